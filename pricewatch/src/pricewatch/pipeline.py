import logging
from datetime import datetime
from typing import AsyncIterator, Sequence, Union

from .aggregator import WindowAggregator
from .config import DEFAULT_CONCURRENCY, DEFAULT_WINDOW
from .export.base import SummaryEmitter
from .models.outcomes import FailureNotice, FetchFailure
from .models.summary import RunStats, Summary
from .providers.base import QuoteSource
from .scheduler import FetchScheduler

logger = logging.getLogger(__name__)

Report = Union[Summary, FailureNotice]


async def iter_reports(
    symbols: Sequence[str],
    since: datetime,
    source: QuoteSource,
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    window_size: int = DEFAULT_WINDOW,
) -> AsyncIterator[Report]:
    """
    Yield one Summary or FailureNotice per input symbol, as fetches complete.
    """
    scheduler = FetchScheduler(source, concurrency=concurrency)
    aggregator = WindowAggregator(window_size=window_size)

    outcomes = scheduler.run(symbols, since)
    try:
        async for outcome in outcomes:
            if isinstance(outcome, FetchFailure):
                yield aggregator.fail(outcome.symbol, outcome.reason)
            else:
                yield aggregator.fold(outcome.symbol, outcome.bars)
    finally:
        await outcomes.aclose()


async def run_pipeline(
    symbols: Sequence[str],
    since: datetime,
    source: QuoteSource,
    emitter: SummaryEmitter,
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    window_size: int = DEFAULT_WINDOW,
) -> RunStats:
    """Fetch, summarize and emit every symbol; returns the run's counts."""
    stats = RunStats(requested=len(symbols))
    logger.info(f"Summarizing {len(symbols)} symbols (concurrency={concurrency}, window={window_size})")

    reports = iter_reports(symbols, since, source, concurrency=concurrency, window_size=window_size)
    completed = False
    try:
        async for report in reports:
            if isinstance(report, FailureNotice):
                stats.failures += 1
            elif report.is_empty:
                stats.empty += 1
            else:
                stats.summaries += 1
            emitter.emit(report)
        completed = True
    finally:
        await reports.aclose()
        emitter.close(completed=completed)

    logger.info(f"Finished: {stats.summaries} summaries, {stats.empty} without data, {stats.failures} failures")
    return stats
