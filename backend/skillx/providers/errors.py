"""Backend provider error taxonomy.

Error classes raised by the recommendations backend client. Callers catch
``ProviderError`` to handle every backend failure with a single handler;
``TransientError`` and ``RateLimitError`` are the retryable ones.
"""

__all__ = [
    "ProviderError",
    "RateLimitError",
    "AuthenticationError",
    "BackendResponseError",
    "TransientError",
]


class ProviderError(Exception):
    """Base class for all backend provider errors.

    Attributes:
        status_code: HTTP status returned by the backend, if any.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(ProviderError):
    """Backend rate limit exceeded (429)."""

    def __init__(
        self,
        message: str,
        retry_after_seconds: float | None = None,
        status_code: int | None = 429,
    ):
        """Initialize RateLimitError.

        Args:
            message: Error description from the backend.
            retry_after_seconds: Optional Retry-After hint from the backend.
            status_code: HTTP status code.
        """
        super().__init__(message, status_code)
        self.retry_after_seconds = retry_after_seconds


class AuthenticationError(ProviderError):
    """Missing, invalid, or expired bearer token (401/403).

    Not retryable: the user has to sign in again.
    """


class BackendResponseError(ProviderError):
    """Backend rejected the request or returned an unusable body.

    Covers non-retryable 4xx responses and non-JSON or malformed payloads.
    """


class TransientError(ProviderError):
    """Temporary failure that may succeed on retry.

    Examples: 5xx responses, connection errors, timeouts.
    """
