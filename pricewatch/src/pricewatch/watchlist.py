from pathlib import Path
from typing import Dict, Any
import yaml
from .errors import ValidationError
from .models.prices import normalize_symbol


def load_watchlist(path: str = "watchlist.yaml") -> Dict[str, Any]:
    """
    Load a symbol watchlist from YAML.
    Expected shape:
      watchlist:
        name: "Tech"
        symbols: [AAPL, MSFT]
    Duplicates are kept as written.
    """
    p = Path(path)
    if not p.exists():
        raise ValidationError(f"Watchlist file not found: {path}")

    try:
        data = yaml.safe_load(p.read_text()) or {}
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid watchlist YAML: {e}")

    if not isinstance(data, dict) or not isinstance(data.get("watchlist"), dict):
        raise ValidationError("Watchlist file must contain a 'watchlist' object.")

    watchlist = data["watchlist"]
    name = watchlist.get("name") or "Watchlist"
    symbols = watchlist.get("symbols")

    if not isinstance(symbols, list) or not symbols:
        raise ValidationError("'watchlist.symbols' must be a non-empty list.")

    norm = []
    for s in symbols:
        if not isinstance(s, str):
            raise ValidationError("All symbols must be non-empty strings.")
        norm.append(normalize_symbol(s))

    return {"name": name, "symbols": norm}
