import csv
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, TextIO, Union

from ..models.outcomes import FailureNotice
from ..models.summary import Summary


def _money(value: Optional[Decimal]) -> str:
    return "" if value is None else f"${value:.2f}"


def _percent(value: Optional[Decimal]) -> str:
    return "" if value is None else f"{value * 100:.2f}%"


def csv_headers(window_size: int) -> List[str]:
    return ["period start", "symbol", "price", "change %", "min", "max", f"{window_size}d avg", "error"]


def summary_row(report: Union[Summary, FailureNotice], since: datetime, window_size: int) -> Dict[str, str]:
    """Flatten a report into one CSV row; undefined cells are left empty."""
    headers = csv_headers(window_size)
    row = dict.fromkeys(headers, "")
    row["period start"] = since.isoformat()
    row["symbol"] = report.symbol

    if isinstance(report, FailureNotice):
        row["error"] = report.reason
        return row

    if report.is_empty:
        row["error"] = "no data"
        return row

    row["price"] = _money(report.last_close)
    row["change %"] = _percent(report.pct_change)
    row["min"] = _money(report.min)
    row["max"] = _money(report.max)
    row[headers[6]] = _money(report.moving_average)
    return row


class CsvSummaryEmitter:
    """Writes one CSV line per report as it arrives."""

    def __init__(self, stream: TextIO, since: datetime, window_size: int):
        self.stream = stream
        self.since = since
        self.window_size = window_size
        self._writer = csv.DictWriter(stream, fieldnames=csv_headers(window_size), lineterminator="\n")
        self._writer.writeheader()

    def emit(self, report: Union[Summary, FailureNotice]) -> None:
        self._writer.writerow(summary_row(report, self.since, self.window_size))
        self.stream.flush()

    def close(self, completed: bool = True) -> None:
        self.stream.flush()
