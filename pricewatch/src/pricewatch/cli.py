import sys
import json
import click
import asyncio
import logging
from datetime import datetime, timezone
from .errors import format_error, PriceWatchError
from .logging import configure_logging
from .config import get_concurrency, get_window_size
from .models.prices import parse_symbols
from .providers.yahoo import YahooQuoteSource
from .providers.finnhub import FinnhubQuoteSource
from .export.csv_export import CsvSummaryEmitter
from .export.json_export import JsonSummaryEmitter
from .pipeline import run_pipeline
from .watchlist import load_watchlist

VERSION = "0.1.0"

# Configure logging at module level
configure_logging()
logger = logging.getLogger(__name__)


def _parse_since(ctx, param, value):
    text = (value or "").strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        since = datetime.fromisoformat(text)
    except ValueError:
        raise click.BadParameter("from must be an ISO-8601 timestamp (e.g. 2024-01-01T00:00:00Z).")
    if since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)
    return since


def _validate_positive(ctx, param, value):
    if value is not None and value < 1:
        raise click.BadParameter(f"--{param.name} must be >= 1.")
    return value


def build_source(provider: str):
    """Quote source for a provider name."""
    if provider == "finnhub":
        return FinnhubQuoteSource()
    return YahooQuoteSource()


def build_emitter(fmt: str, stream, since: datetime, window_size: int):
    if fmt == "json":
        return JsonSummaryEmitter(stream)
    return CsvSummaryEmitter(stream, since, window_size)


@click.group()
def cli():
    """pricewatch: Rolling price summaries for many symbols."""
    pass


@cli.command()
@click.option("--from", "since", required=True, callback=_parse_since, help="Period start (ISO-8601, e.g. 2024-01-01T00:00:00Z)")
@click.option("--symbols", default="AAPL,MSFT,UBER,GOOG", show_default=True, help="Comma-separated symbols; duplicates are kept")
@click.option("--watchlist", "watchlist_path", required=False, help="Load symbols from a watchlist YAML instead of --symbols")
@click.option("--provider", default="yahoo", type=click.Choice(["yahoo", "finnhub"]), show_default=True, help="Quote provider")
@click.option("--concurrency", type=int, default=None, callback=_validate_positive, help="Max simultaneous requests [env PRICEWATCH_CONCURRENCY, default 4]")
@click.option("--window", type=int, default=None, callback=_validate_positive, help="Moving average window in bars [env PRICEWATCH_WINDOW, default 30]")
@click.option("--format", "fmt", default="csv", type=click.Choice(["csv", "json"]), show_default=True, help="Output format")
@click.option("--out", required=False, help="Write output to this file instead of stdout")
@click.option("--verbose", is_flag=True, help="Debug logging")
def summary(since, symbols, watchlist_path, provider, concurrency, window, fmt, out, verbose):
    """
    Fetch daily closes since --from and print min, max, change and moving average per symbol.
    """
    if verbose:
        configure_logging(logging.DEBUG)

    if watchlist_path:
        watchlist = load_watchlist(watchlist_path)
        symbol_list = watchlist["symbols"]
        logger.info(f"Loaded {len(symbol_list)} symbols from watchlist '{watchlist['name']}'")
    else:
        try:
            symbol_list = parse_symbols(symbols)
        except PriceWatchError as e:
            raise click.BadParameter(e.message)

    concurrency = concurrency or get_concurrency()
    window = window or get_window_size()
    source = build_source(provider)

    def _run(stream):
        emitter = build_emitter(fmt, stream, since, window)
        return asyncio.run(run_pipeline(
            symbol_list,
            since,
            source,
            emitter,
            concurrency=concurrency,
            window_size=window,
        ))

    if out:
        with open(out, "w", newline="") as f:
            stats = _run(f)
        logger.info(f"Output written to {out}")
    else:
        stats = _run(sys.stdout)
    return stats


@cli.command()
def version():
    """Print version information."""
    _print_json({"version": VERSION})


def _print_json(data):
    """Helper to print standard JSON envelope."""
    payload = {
        "ok": True,
        "data": data,
        "meta": {
            "version": 1
        }
    }
    click.echo(json.dumps(payload, indent=2))


def main():
    """Entry point for the CLI."""
    try:
        cli(standalone_mode=False)
    except Exception as e:
        if isinstance(e, click.exceptions.Exit):
             sys.exit(e.exit_code)
        if isinstance(e, click.exceptions.Abort):
             sys.exit(130)

        print(format_error(e))
        sys.exit(1)

if __name__ == "__main__":
    main()
