"""Error taxonomy shared by the query core and the webservice."""

from __future__ import annotations

from typing import Any, Dict


class OverlayQueryError(Exception):
    """Base error carrying the HTTP status and machine-readable code."""

    status_code = 500
    code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Return the uniform error envelope."""
        return {"status": "error", "message": self.message, "code": self.code}


class ConfigurationError(OverlayQueryError):
    """Raised at startup when required settings are absent or invalid."""

    code = "CONFIGURATION_ERROR"


class QueryValidationError(OverlayQueryError):
    """Raised when raw query parameters cannot become a ``QuerySpec``."""

    status_code = 400

    INVALID_TXID = "InvalidTxid"
    INVALID_LIMIT = "InvalidLimit"
    INVALID_SKIP = "InvalidSkip"
    INVALID_DATE = "InvalidDate"
    INVALID_DATE_RANGE = "InvalidDateRange"
    INVALID_SORT_ORDER = "InvalidSortOrder"

    CODES = {
        INVALID_TXID: "INVALID_TXID",
        INVALID_LIMIT: "INVALID_LIMIT",
        INVALID_SKIP: "INVALID_SKIP",
        INVALID_DATE: "INVALID_DATE",
        INVALID_DATE_RANGE: "INVALID_DATE_RANGE",
        INVALID_SORT_ORDER: "INVALID_SORT_ORDER",
    }

    def __init__(self, kind: str, message: str):
        if kind not in self.CODES:
            raise ValueError(f"Unknown validation error kind: {kind}")
        super().__init__(message)
        self.kind = kind
        self.code = self.CODES[kind]


class Unauthorized(OverlayQueryError):
    """Raised by the admin auth gate. The message never says why."""

    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class StoreUnavailable(OverlayQueryError):
    """Raised when the record store cannot be reached or a call times out."""

    status_code = 503
    code = "STORE_UNAVAILABLE"

    def __init__(self, message: str = "Record store unavailable", timed_out: bool = False):
        super().__init__(message)
        self.timed_out = timed_out
        if timed_out:
            self.code = "STORE_TIMEOUT"


class NotFound(OverlayQueryError):
    """Raised for unknown routes."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, message: str = "Endpoint not found"):
        super().__init__(message)
