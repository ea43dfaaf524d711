"""Quote source contract."""

from datetime import datetime
from typing import List, Protocol

from ..models.prices import PriceBar


class QuoteSource(Protocol):
    """Anything that can produce a symbol's daily closes since a point in time."""

    async def fetch(self, symbol: str, since: datetime) -> List[PriceBar]:
        """
        Return the symbol's bars from `since` onward, oldest first.
        An empty list means no data; any exception is treated as a fetch failure.
        """
        ...
