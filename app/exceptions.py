"""
Application errors. Each carries the HTTP status the API layer maps it to.
"""
from typing import Any, Optional


class AppError(Exception):
    """Base error; rendered as {"error": message, "details": ...} by the exception handlers in main.py"""

    status_code = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_response(self) -> dict:
        body: dict = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    """Missing or malformed request fields. Client-caused, never retried."""

    status_code = 400


class NotFoundError(AppError):
    """Single-item lookup yielded nothing."""

    status_code = 404


class RemoteFetchError(AppError):
    """
    Non-success response (or transport failure/timeout) from Shopify, Dutify or another upstream.
    Auth failures (401/403) keep the upstream status; everything else is folded to 500.
    """

    def __init__(self, message: str, status: Optional[int] = None, body: Any = None):
        super().__init__(message, details=body)
        self.status = status
        self.body = body

    @property
    def status_code(self) -> int:  # type: ignore[override]
        if self.status in (401, 403):
            return self.status
        return 500


class SyncIncompleteError(AppError):
    """Collection sync exceeded the page safety bound (remote never returned a short or empty page)."""

    status_code = 500

    def __init__(self, message: str, pages_fetched: int = 0):
        super().__init__(message, details={"pagesFetched": pages_fetched})
        self.pages_fetched = pages_fetched


class PersistenceError(AppError):
    """Upsert/insert failure."""

    status_code = 500
