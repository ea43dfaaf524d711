"""Summary emitter contract."""

from typing import Protocol, Union

from ..models.outcomes import FailureNotice
from ..models.summary import Summary


class SummaryEmitter(Protocol):
    """Receives one report per symbol and renders it."""

    def emit(self, report: Union[Summary, FailureNotice]) -> None:
        ...

    def close(self, completed: bool = True) -> None:
        """
        Flush anything buffered; called once after the last report.

        `completed` is False when the run was cancelled or failed part way.
        """
        ...
