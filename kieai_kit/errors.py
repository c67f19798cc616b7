"""Error taxonomy for the KIE.ai API client.

Every failure surfaced by the client is a ``KieApiError`` subclass. The poller
decides whether to keep going through :func:`classify_error`, which is the only
place retry-vs-fatal policy lives.
"""

from __future__ import annotations

import enum
from typing import Any


class KieApiError(Exception):
    """Raised when the KIE.ai API returns an error."""

    def __init__(self, message: str, status_code: int | None = None, body: Any = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class InvalidURLError(KieApiError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Invalid URL: {url}")


class RequestFailedError(KieApiError):
    """HTTP status the taxonomy has no dedicated kind for."""

    def __init__(self, status_code: int, body: str | None = None):
        if body:
            message = f"Request failed with status code {status_code}: {body}"
        else:
            message = f"Request failed with status code {status_code}"
        super().__init__(message, status_code=status_code, body=body)


class DecodingFailedError(KieApiError):
    """The response did not match the expected contract."""

    def __init__(self, cause: Exception | str, body: Any = None):
        self.cause = cause
        super().__init__(f"Failed to decode response: {cause}", body=body)


class TaskFailedError(KieApiError):
    def __init__(self, message: str):
        self.reason = message
        super().__init__(f"Task failed: {message}")


class TaskTimeoutError(KieApiError):
    """Polling budget (wall clock or attempts) ran out before a terminal state."""

    def __init__(self, timeout: float | None = None, attempts: int | None = None):
        self.timeout = timeout
        self.attempts = attempts
        if timeout is None:
            message = "Request timed out"
        else:
            message = f"Request timed out after {timeout:g}s"
            if attempts is not None:
                message += f" ({attempts} attempts)"
        super().__init__(message)


class UnauthorizedError(KieApiError):
    def __init__(self, body: Any = None):
        super().__init__("Unauthorized: Please check your API key", status_code=401, body=body)


class BadRequestError(KieApiError):
    def __init__(self, message: str = "Invalid request", status_code: int | None = 400):
        self.reason = message
        super().__init__(f"Bad request: {message}", status_code=status_code, body=message)


class ServerError(KieApiError):
    def __init__(self, message: str = "Internal server error", status_code: int | None = None, body: Any = None):
        self.reason = message
        super().__init__(f"Server error: {message}", status_code=status_code, body=body)


class NotFoundError(KieApiError):
    def __init__(self, body: Any = None):
        super().__init__("Resource not found", status_code=404, body=body)


class RateLimitedError(KieApiError):
    def __init__(self, body: Any = None):
        super().__init__("Rate limit exceeded", status_code=429, body=body)


class ResultTypeMismatchError(KieApiError):
    def __init__(self, expected: str, actual: str | None):
        self.expected = expected
        self.actual = actual
        if actual is None:
            message = f"Result type mismatch: expected {expected}, but task content type is missing"
        else:
            message = f"Result type mismatch: expected {expected}, got {actual}"
        super().__init__(message)


class NetworkError(KieApiError):
    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Network error: {cause}")


class UnknownError(KieApiError):
    def __init__(self, cause: Exception | str):
        self.cause = cause
        super().__init__(f"Unknown error: {cause}")


def error_from_status(status_code: int, body: str | None = None) -> KieApiError:
    """Map a non-2xx HTTP status to the matching taxonomy error.

    400 and 5xx keep the body text as their message; everything without a
    dedicated kind becomes ``RequestFailedError``.
    """
    if status_code == 400:
        return BadRequestError(body or "Invalid request")
    if status_code == 401:
        return UnauthorizedError(body)
    if status_code == 404:
        return NotFoundError(body)
    if status_code == 429:
        return RateLimitedError(body)
    if 500 <= status_code <= 599:
        return ServerError(body or "Internal server error", status_code=status_code, body=body)
    return RequestFailedError(status_code, body)


class ErrorAction(enum.Enum):
    RETRY = "retry"
    FATAL = "fatal"


_RETRYABLE = (ServerError, RateLimitedError, DecodingFailedError, NetworkError)


def classify_error(exc: BaseException) -> ErrorAction:
    """Decide whether a polling error keeps the loop alive.

    Transient: server errors, rate limiting, 5xx request failures, decoding
    failures and network errors. Everything else, including anything that is
    not a ``KieApiError``, ends polling.
    """
    if isinstance(exc, _RETRYABLE):
        return ErrorAction.RETRY
    if isinstance(exc, RequestFailedError) and exc.status_code is not None and exc.status_code >= 500:
        return ErrorAction.RETRY
    return ErrorAction.FATAL
