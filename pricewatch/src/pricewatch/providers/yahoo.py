import asyncio
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

import pandas as pd
import yfinance as yf

from ..errors import FetchError
from ..models.prices import PriceBar

logger = logging.getLogger(__name__)

_CLOSE_COLUMNS = ("Adj Close", "Close")


def _pick_close_column(df: pd.DataFrame) -> Optional[str]:
    for col in _CLOSE_COLUMNS:
        if col in df.columns:
            return col
    return None


def fetch_prices(
    ticker: str,
    start: datetime,
    end: Optional[datetime] = None,
    interval: str = "1d",
) -> List[PriceBar]:
    """Fetch daily closes from Yahoo Finance, oldest first."""
    try:
        t = yf.Ticker(ticker)
        df = t.history(start=start, end=end, interval=interval, auto_adjust=False, actions=False)
    except Exception as e:
        logger.error(f"Failed to fetch prices for {ticker}: {e}")
        raise FetchError(f"Yahoo prices failed: {e}", {"symbol": ticker})

    if df is None or df.empty:
        logger.warning(f"No price data for {ticker}")
        return []

    column = _pick_close_column(df)
    if column is None:
        raise FetchError(f"Yahoo payload for {ticker} has no close column", {"symbol": ticker, "columns": [str(c) for c in df.columns]})

    closes = pd.to_numeric(df[column], errors="coerce").dropna().sort_index()

    bars = []
    # Index is a tz-aware DatetimeIndex in the exchange timezone
    for ts, close in closes.items():
        bars.append(PriceBar(
            symbol=ticker,
            timestamp=pd.Timestamp(ts).to_pydatetime(),
            close=Decimal(str(float(close))),
        ))
    return bars


class YahooQuoteSource:
    """yfinance-backed quote source; the blocking download runs in a worker thread."""

    def __init__(self, until: Optional[datetime] = None, interval: str = "1d"):
        self.until = until
        self.interval = interval

    async def fetch(self, symbol: str, since: datetime) -> List[PriceBar]:
        return await asyncio.to_thread(fetch_prices, symbol, since, self.until, self.interval)
