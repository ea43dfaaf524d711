import asyncio
import requests
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional
from ..errors import FetchError
from ..models.prices import PriceBar
from ..config import get_finnhub_key

logger = logging.getLogger(__name__)

BASE_URL = "https://finnhub.io/api/v1"


def fetch_candles(
    ticker: str,
    start: datetime,
    end: Optional[datetime] = None,
    resolution: str = "D",
) -> List[PriceBar]:
    """
    Fetch daily candles from Finnhub.
    Reference: https://finnhub.io/docs/api/stock-candles
    """
    api_key = get_finnhub_key()
    if not api_key:
        raise FetchError(
            "FINNHUB_API_KEY is missing or invalid. "
            "Please add it to your .env file.",
            {"symbol": ticker}
        )

    end = end or datetime.now(timezone.utc)
    url = f"{BASE_URL}/stock/candle"
    params = {
        "symbol": ticker,
        "resolution": resolution,
        "from": int(start.timestamp()),
        "to": int(end.timestamp()),
        "token": api_key
    }

    try:
        resp = requests.get(url, params=params, timeout=10)
        resp.raise_for_status()
        data = resp.json()
    except requests.RequestException as e:
        logger.error(f"Finnhub candle request failed for {ticker}: {e}")
        raise FetchError(f"Finnhub fetch failed: {e}", {"symbol": ticker})
    except ValueError as e:
        logger.error(f"Finnhub returned invalid JSON for {ticker}: {e}")
        raise FetchError(f"Finnhub error: {e}", {"symbol": ticker})

    # Payload: {"s": "ok", "t": [unix...], "c": [close...], ...} or {"s": "no_data"}
    status = data.get("s")
    if status == "no_data":
        logger.warning(f"No price data for {ticker}")
        return []
    if status != "ok":
        raise FetchError(f"Finnhub candle status {status!r} for {ticker}", {"symbol": ticker, "payload": data})

    stamps = data.get("t") or []
    closes = data.get("c") or []
    if len(stamps) != len(closes):
        raise FetchError(f"Finnhub candles for {ticker} are misaligned", {"symbol": ticker})

    try:
        bars = [
            PriceBar(
                symbol=ticker,
                timestamp=datetime.fromtimestamp(ts, tz=timezone.utc),
                close=Decimal(str(close)),
            )
            for ts, close in zip(stamps, closes)
        ]
    except Exception as e:
        logger.error(f"Finnhub processing failed for {ticker}: {e}")
        raise FetchError(f"Finnhub error: {e}", {"symbol": ticker})

    bars.sort(key=lambda b: b.timestamp)
    return bars


class FinnhubQuoteSource:
    """Finnhub candle endpoint as a quote source."""

    def __init__(self, until: Optional[datetime] = None):
        self.until = until

    async def fetch(self, symbol: str, since: datetime) -> List[PriceBar]:
        return await asyncio.to_thread(fetch_candles, symbol, since, self.until)
