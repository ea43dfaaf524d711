"""
Incremental per-symbol statistics.

Each bar is folded in O(1): min/max by comparison, and a fixed-capacity
FIFO window with a running sum for the moving average. History is never
rescanned.
"""
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Deque, Dict, Iterable, Optional

from .config import DEFAULT_WINDOW
from .errors import ValidationError
from .models.outcomes import FailureNotice
from .models.prices import PriceBar
from .models.summary import Summary

logger = logging.getLogger(__name__)


class SymbolStatus(str, Enum):
    NOT_STARTED = "not_started"
    ACCUMULATING = "accumulating"
    FINALIZED = "finalized"
    FAILED = "failed"


@dataclass
class WindowState:
    symbol: str
    capacity: int
    min: Optional[Decimal] = None
    max: Optional[Decimal] = None
    window: Deque[Decimal] = field(default_factory=deque)
    window_sum: Decimal = Decimal(0)
    first_close: Optional[Decimal] = None
    last_close: Optional[Decimal] = None
    last_timestamp: Optional[datetime] = None
    count: int = 0

    def __post_init__(self):
        self.window = deque(self.window, maxlen=self.capacity)

    def push(self, bar: PriceBar) -> None:
        close = bar.close

        if self.min is None or close < self.min:
            self.min = close
        if self.max is None or close > self.max:
            self.max = close

        if len(self.window) == self.capacity:
            self.window_sum -= self.window[0]
        self.window.append(close)  # maxlen evicts the oldest
        self.window_sum += close

        if self.count == 0:
            self.first_close = close
        self.last_close = close
        self.last_timestamp = bar.timestamp
        self.count += 1

    def summary(self) -> Summary:
        moving_average = None
        if self.window:
            moving_average = self.window_sum / len(self.window)

        abs_change = None
        pct_change = None
        if self.count >= 1:
            abs_change = self.last_close - self.first_close
        if self.count >= 2 and self.first_close != 0:
            pct_change = abs_change / self.first_close

        return Summary(
            symbol=self.symbol,
            window_size=self.capacity,
            sample_count=self.count,
            min=self.min,
            max=self.max,
            moving_average=moving_average,
            first_close=self.first_close,
            last_close=self.last_close,
            abs_change=abs_change,
            pct_change=pct_change,
            last_timestamp=self.last_timestamp,
        )


class WindowAggregator:
    """
    Folds bars into per-symbol WindowStates.

    A state is created on the first bar for a symbol and dropped when the
    symbol is finalized or failed, so one symbol has at most one
    live state at a time.
    """

    def __init__(self, window_size: int = DEFAULT_WINDOW):
        if window_size < 1:
            raise ValidationError("window_size must be >= 1.", {"window_size": window_size})
        self.window_size = window_size
        self._states: Dict[str, WindowState] = {}
        self._terminal: Dict[str, SymbolStatus] = {}

    def update(self, bar: PriceBar) -> WindowState:
        state = self._states.get(bar.symbol)
        if state is None:
            state = WindowState(symbol=bar.symbol, capacity=self.window_size)
            self._states[bar.symbol] = state
            self._terminal.pop(bar.symbol, None)
        state.push(bar)
        return state

    def snapshot(self, symbol: str) -> Summary:
        state = self._states.get(symbol)
        if state is None:
            return Summary(symbol=symbol, window_size=self.window_size)
        return state.summary()

    def finalize(self, symbol: str) -> Summary:
        summary = self.snapshot(symbol)
        self._states.pop(symbol, None)
        self._terminal[symbol] = SymbolStatus.FINALIZED
        if summary.is_empty:
            logger.info(f"No bars for {symbol}; summary is undefined")
        return summary

    def fail(self, symbol: str, reason: str) -> FailureNotice:
        if self._states.pop(symbol, None) is not None:
            logger.debug(f"Dropped partial window for {symbol}")
        self._terminal[symbol] = SymbolStatus.FAILED
        return FailureNotice(symbol=symbol, reason=reason)

    def status(self, symbol: str) -> SymbolStatus:
        if symbol in self._states:
            return SymbolStatus.ACCUMULATING
        return self._terminal.get(symbol, SymbolStatus.NOT_STARTED)

    def fold(self, symbol: str, bars: Iterable[PriceBar]) -> Summary:
        """Apply a whole ordered bar sequence and finalize it."""
        for bar in bars:
            self.update(bar)
        return self.finalize(symbol)
