"""
Error types shared across the playlist pipeline, the catalog client and the API.
"""
from typing import Any, Optional


class WorkoutMixError(Exception):
    """Base class for all errors raised by this package"""
    pass


class CatalogError(WorkoutMixError):
    """Raised when a catalog request fails (non-2xx response, timeout, bad payload)"""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Any = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.body = body
        self.endpoint = endpoint


class RetryableError(CatalogError):
    """Base exception for catalog errors that should trigger a retry"""

    retry_after: Optional[float] = None


class RateLimitError(RetryableError):
    """Raised when rate limit is exceeded (429 status code)"""

    def __init__(self, message: str, retry_after: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ServerError(RetryableError):
    """Raised when the catalog returns a 5xx error"""
    pass


class NetworkError(RetryableError):
    """Raised when the connection fails or times out"""
    pass


class PreconditionError(WorkoutMixError):
    """
    A run cannot start: missing/expired credential, unknown workout,
    or a workout without sections. Raised before any remote call.
    """

    def __init__(self, message: str, reason: str = "invalid"):
        super().__init__(message)
        self.reason = reason


class TerminalError(WorkoutMixError):
    """A critical remote call failed and the run was aborted"""

    def __init__(self, message: str, call: str, status: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.call = call
        self.status = status
        self.body = body


class RunCancelled(WorkoutMixError):
    """The caller cancelled the run between remote calls"""
    pass
