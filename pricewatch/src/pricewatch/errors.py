import json
import traceback

class PriceWatchError(Exception):
    """Base exception for pricewatch"""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

class ValidationError(PriceWatchError):
    """Input validation errors"""
    pass

class FetchError(PriceWatchError):
    """A quote source could not produce bars for a symbol"""
    pass

def format_error(e: Exception) -> str:
    """Format exception as the JSON error envelope."""

    if isinstance(e, PriceWatchError):
        error_type = e.__class__.__name__
        message = e.message
        details = e.details
    else:
        error_type = "UnknownError"
        message = str(e)
        details = {
            "traceback": traceback.format_exc().splitlines()
        }

    payload = {
        "ok": False,
        "error": {
            "type": error_type,
            "message": message,
            "details": details
        },
        "meta": {
            "version": 1
        }
    }

    return json.dumps(payload, indent=2)
