from __future__ import annotations

from typing import Optional


class NewsError(Exception):
    """Base class for every error raised by rss_aggregator."""


class ArgumentError(NewsError):
    """Raised when a caller-supplied request is invalid. Never retried."""

    def __init__(self, message: str) -> None:
        super().__init__(f"invalid argument: {message}")
        self.reason = message


class TransportError(NewsError):
    """Raised when a feed or article cannot be fetched (network failure, non-2xx response)."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ParseError(NewsError):
    """Raised when a feed document or one of its publish dates cannot be parsed."""


class FetchCancelled(NewsError):
    """Raised when the request context was cancelled or its deadline passed."""


class RetriableError(NewsError):
    """
    The target asked us to come back later: retry after exactly `retry_after` seconds.

    Only the retry policy looks at this type; it never leaves the aggregation layer.
    """

    def __init__(self, cause: Exception, retry_after: float) -> None:
        if retry_after <= 0:
            raise ValueError("retry_after must be positive")
        super().__init__(f"{cause} (retry after {retry_after:g}s)")
        self.cause = cause
        self.retry_after = retry_after
