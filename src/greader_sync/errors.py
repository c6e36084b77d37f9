"""Error types raised inside the synchronization core.

Each error carries the ``FeedStatus`` it maps to. Only the orchestrator
catches them; public coroutines turn them into status values.
"""

from .models import FeedStatus


class SyncError(Exception):
    """Base class for failures detected while talking to the server."""

    status = FeedStatus.OTHER_ERROR


class AuthError(SyncError):
    """Raised when login fails or the session is not usable."""

    status = FeedStatus.AUTH_ERROR


class NetworkError(SyncError):
    """Raised on transport failures, timeouts and non-success HTTP statuses."""

    status = FeedStatus.NETWORK_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PayloadError(SyncError):
    """Raised when the server answers with something we cannot decode."""

    status = FeedStatus.OTHER_ERROR
