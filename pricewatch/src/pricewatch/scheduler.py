import asyncio
import logging
from collections import deque
from datetime import datetime
from typing import AsyncIterator, Dict, Sequence, Tuple

from .config import DEFAULT_CONCURRENCY
from .errors import ValidationError
from .models.outcomes import FetchFailure, FetchOutcome, FetchSuccess
from .models.prices import normalize_symbol
from .providers.base import QuoteSource

logger = logging.getLogger(__name__)


def _reason(e: BaseException) -> str:
    return str(e) or e.__class__.__name__


class FetchScheduler:
    """
    Fetch many symbols with at most `concurrency` quote requests in flight.

    Outcomes are yielded in completion order, one per input symbol.
    Duplicate symbols are fetched independently. A blank symbol raises
    ValidationError before any request is made.
    """

    def __init__(self, source: QuoteSource, concurrency: int = DEFAULT_CONCURRENCY):
        if concurrency < 1:
            raise ValidationError("concurrency must be >= 1.", {"concurrency": concurrency})
        self.source = source
        self.concurrency = concurrency

    async def _fetch_one(self, symbol: str, since: datetime) -> FetchOutcome:
        logger.info(f"Fetching prices for {symbol}")
        try:
            bars = await self.source.fetch(symbol, since)
            outcome = FetchSuccess(symbol=symbol, bars=list(bars))
        except Exception as e:
            logger.warning(f"Fetch failed for {symbol}: {_reason(e)}")
            return FetchFailure(symbol=symbol, reason=_reason(e))
        logger.debug(f"Fetched {len(outcome.bars)} bars for {symbol}")
        return outcome

    async def run(self, symbols: Sequence[str], since: datetime) -> AsyncIterator[FetchOutcome]:
        # Reject malformed symbols before any request is made
        normalized = [normalize_symbol(s) for s in symbols]
        pending = deque(enumerate(normalized))
        active: Dict["asyncio.Task[FetchOutcome]", Tuple[int, str]] = {}

        def fill():
            while pending and len(active) < self.concurrency:
                index, symbol = pending.popleft()
                task = asyncio.ensure_future(self._fetch_one(symbol, since))
                active[task] = (index, symbol)

        fill()
        try:
            while active:
                done, _ = await asyncio.wait(set(active), return_when=asyncio.FIRST_COMPLETED)
                finished = sorted(done, key=lambda t: active[t][0])
                for task in finished:
                    del active[task]
                # Start replacements before handing results downstream
                fill()
                for task in finished:
                    yield task.result()
        finally:
            for task in active:
                task.cancel()
            if active:
                logger.info(f"Cancelled {len(active)} outstanding fetches")
                await asyncio.gather(*active, return_exceptions=True)
