import json
from typing import Any, Dict, List, TextIO, Union

from ..models.outcomes import FailureNotice
from ..models.summary import Summary


class JsonSummaryEmitter:
    """
    Collects reports and writes a single JSON envelope on close.

    An incomplete run still writes the reports it got, with `"ok": false`.
    """

    def __init__(self, stream: TextIO):
        self.stream = stream
        self.summaries: List[Dict[str, Any]] = []
        self.failures: List[Dict[str, Any]] = []

    def emit(self, report: Union[Summary, FailureNotice]) -> None:
        if isinstance(report, FailureNotice):
            self.failures.append(report.model_dump(mode="json"))
        else:
            self.summaries.append(report.model_dump(mode="json"))

    def close(self, completed: bool = True) -> None:
        payload = {
            "ok": completed,
            "data": {
                "summaries": self.summaries,
                "failures": self.failures,
            },
            "meta": {
                "version": 1
            }
        }
        if not completed:
            payload["error"] = {
                "type": "Incomplete",
                "message": "Run did not complete; data is partial.",
                "details": {}
            }
        json.dump(payload, self.stream, indent=2, sort_keys=True, default=str)
        self.stream.write("\n")
        self.stream.flush()
