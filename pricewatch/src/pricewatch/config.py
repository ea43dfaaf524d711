import os
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 4
DEFAULT_WINDOW = 30

def load_env_file(path: str = ".env"):
    """
    Load environment variables from a .env file into os.environ.
    Does not override existing values.
    """
    p = Path(path)
    if not p.exists():
        return

    try:
        with open(p) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith('#'):
                    continue
                if '=' in line:
                    key, val = line.split('=', 1)
                    key = key.strip()
                    val = val.strip().strip('"').strip("'")
                    if key not in os.environ:
                        os.environ[key] = val
    except OSError as e:
        logger.warning(f"Failed to load .env: {e}")

# Load on import
load_env_file()

def get_finnhub_key() -> Optional[str]:
    """Get Finnhub API Key, or None if missing."""
    key = os.environ.get("FINNHUB_API_KEY")
    # Handle the template default
    if not key or key == "your_key_here":
        return None
    return key

def _get_positive_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not an integer")
        return default
    if value < 1:
        logger.warning(f"Ignoring {name}={raw!r}: must be >= 1")
        return default
    return value

def get_concurrency() -> int:
    """Max simultaneous quote requests (PRICEWATCH_CONCURRENCY)."""
    return _get_positive_int("PRICEWATCH_CONCURRENCY", DEFAULT_CONCURRENCY)

def get_window_size() -> int:
    """Moving average window in bars (PRICEWATCH_WINDOW)."""
    return _get_positive_int("PRICEWATCH_WINDOW", DEFAULT_WINDOW)
