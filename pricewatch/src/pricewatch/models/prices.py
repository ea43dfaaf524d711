from datetime import datetime
from decimal import Decimal
from typing import Annotated, List

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from ..errors import ValidationError

# Ticker identifier, case-normalized on construction.
Symbol = Annotated[str, StringConstraints(strip_whitespace=True, to_upper=True, min_length=1)]


class PriceBar(BaseModel):
    """
    Single daily observation: timestamp and closing price.
    """
    model_config = ConfigDict(frozen=True)

    symbol: Symbol
    timestamp: datetime
    close: Decimal = Field(allow_inf_nan=False)


def normalize_symbol(raw: str) -> str:
    symbol = (raw or "").strip().upper()
    if not symbol:
        raise ValidationError("Symbols must be non-empty strings.")
    return symbol


def parse_symbols(text: str) -> List[str]:
    """
    Split a comma-separated symbol list (e.g. "aapl, MSFT,aapl").
    Order and duplicates are kept; blank entries are dropped.
    """
    symbols = [t.strip().upper() for t in (text or "").split(',') if t.strip()]
    if not symbols:
        raise ValidationError("Symbol list must include at least one symbol.", {"input": text})
    return symbols
