import asyncio
import datetime
import unittest
from decimal import Decimal
from pathlib import Path
from unittest import mock
import sys

sys.path.insert(0, str(Path(__file__).resolve().parent))

import pandas as pd
import requests

from fakes import SINCE
from pricewatch.errors import FetchError
from pricewatch.providers import finnhub, yahoo


def _fake_ticker(history=None, error=None):
    calls = {}

    class FakeTicker:
        def __init__(self, ticker):
            calls["ticker"] = ticker

        def history(self, **kwargs):
            calls["kwargs"] = kwargs
            if error is not None:
                raise error
            return history

    return FakeTicker, calls


class TestYahooProvider(unittest.TestCase):
    def test_prefers_adjusted_close_sorted_without_nan(self):
        index = pd.to_datetime(["2024-01-04", "2024-01-02", "2024-01-03"]).tz_localize("America/New_York")
        history = pd.DataFrame(
            {
                "Close": [12.0, 10.0, float("nan")],
                "Adj Close": [11.5, 9.5, float("nan")],
            },
            index=index,
        )
        fake, calls = _fake_ticker(history)

        with mock.patch.object(yahoo.yf, "Ticker", fake):
            bars = yahoo.fetch_prices("AAPL", SINCE)

        self.assertEqual(calls["ticker"], "AAPL")
        self.assertEqual(calls["kwargs"]["start"], SINCE)
        self.assertFalse(calls["kwargs"]["auto_adjust"])
        self.assertEqual([b.close for b in bars], [Decimal("9.5"), Decimal("11.5")])
        self.assertEqual(bars[0].timestamp.date(), datetime.date(2024, 1, 2))
        self.assertTrue(all(b.symbol == "AAPL" for b in bars))

    def test_falls_back_to_close(self):
        index = pd.to_datetime(["2024-01-02"])
        fake, _ = _fake_ticker(pd.DataFrame({"Close": [101.25]}, index=index))

        with mock.patch.object(yahoo.yf, "Ticker", fake):
            bars = yahoo.fetch_prices("MSFT", SINCE)

        self.assertEqual(bars[0].close, Decimal("101.25"))

    def test_empty_history_returns_no_bars(self):
        fake, _ = _fake_ticker(pd.DataFrame())

        with mock.patch.object(yahoo.yf, "Ticker", fake):
            self.assertEqual(yahoo.fetch_prices("NOPE", SINCE), [])

    def test_download_error_becomes_fetch_error(self):
        fake, _ = _fake_ticker(error=RuntimeError("boom"))

        with mock.patch.object(yahoo.yf, "Ticker", fake):
            with self.assertRaises(FetchError) as ctx:
                yahoo.fetch_prices("AAPL", SINCE)

        self.assertIn("boom", ctx.exception.message)
        self.assertEqual(ctx.exception.details["symbol"], "AAPL")

    def test_missing_close_column_becomes_fetch_error(self):
        index = pd.to_datetime(["2024-01-02"])
        fake, _ = _fake_ticker(pd.DataFrame({"Open": [1.0]}, index=index))

        with mock.patch.object(yahoo.yf, "Ticker", fake):
            with self.assertRaises(FetchError):
                yahoo.fetch_prices("AAPL", SINCE)

    def test_source_fetch_runs_download(self):
        index = pd.to_datetime(["2024-01-02", "2024-01-03"])
        fake, calls = _fake_ticker(pd.DataFrame({"Close": [1.0, 2.0]}, index=index))
        until = SINCE + datetime.timedelta(days=30)

        with mock.patch.object(yahoo.yf, "Ticker", fake):
            bars = asyncio.run(yahoo.YahooQuoteSource(until=until).fetch("GOOG", SINCE))

        self.assertEqual(len(bars), 2)
        self.assertEqual(calls["kwargs"]["end"], until)


def _response(payload, status_error=None):
    resp = mock.Mock()
    resp.json.return_value = payload
    if status_error is not None:
        resp.raise_for_status.side_effect = status_error
    return resp


class TestFinnhubProvider(unittest.TestCase):
    def setUp(self):
        patcher = mock.patch.object(finnhub, "get_finnhub_key", return_value="test-key")
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_parses_candles(self):
        t0 = int(SINCE.timestamp())
        payload = {"s": "ok", "t": [t0 + 86400, t0], "c": [12.5, 10.0]}

        with mock.patch.object(finnhub.requests, "get", return_value=_response(payload)) as get:
            bars = finnhub.fetch_candles("AAPL", SINCE)

        params = get.call_args.kwargs["params"]
        self.assertEqual(params["symbol"], "AAPL")
        self.assertEqual(params["resolution"], "D")
        self.assertEqual(params["from"], t0)
        self.assertEqual(params["token"], "test-key")
        self.assertEqual([b.close for b in bars], [Decimal("10.0"), Decimal("12.5")])
        self.assertEqual(bars[0].timestamp, SINCE)

    def test_no_data_returns_no_bars(self):
        with mock.patch.object(finnhub.requests, "get", return_value=_response({"s": "no_data"})):
            self.assertEqual(finnhub.fetch_candles("NOPE", SINCE), [])

    def test_http_error_becomes_fetch_error(self):
        resp = _response({}, status_error=requests.HTTPError("403 Forbidden"))
        with mock.patch.object(finnhub.requests, "get", return_value=resp):
            with self.assertRaises(FetchError) as ctx:
                finnhub.fetch_candles("AAPL", SINCE)

        self.assertIn("403", ctx.exception.message)

    def test_misaligned_payload_becomes_fetch_error(self):
        payload = {"s": "ok", "t": [1, 2], "c": [1.0]}
        with mock.patch.object(finnhub.requests, "get", return_value=_response(payload)):
            with self.assertRaises(FetchError):
                finnhub.fetch_candles("AAPL", SINCE)

    def test_missing_key_becomes_fetch_error(self):
        with mock.patch.object(finnhub, "get_finnhub_key", return_value=None):
            with self.assertRaises(FetchError):
                asyncio.run(finnhub.FinnhubQuoteSource().fetch("AAPL", SINCE))


if __name__ == "__main__":
    unittest.main()
