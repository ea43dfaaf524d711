from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .prices import Symbol


class Summary(BaseModel):
    """
    Read-only snapshot of one symbol's rolling statistics.
    Fields that cannot be computed (no samples, zero base) are None.
    """
    model_config = ConfigDict(frozen=True)

    symbol: Symbol
    window_size: int
    sample_count: int = 0

    min: Optional[Decimal] = None
    max: Optional[Decimal] = None
    moving_average: Optional[Decimal] = None
    first_close: Optional[Decimal] = None
    last_close: Optional[Decimal] = None
    abs_change: Optional[Decimal] = None
    pct_change: Optional[Decimal] = None
    last_timestamp: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        return self.sample_count == 0


class RunStats(BaseModel):
    """Counts for one pipeline run."""
    requested: int = 0
    summaries: int = 0
    empty: int = 0
    failures: int = 0
