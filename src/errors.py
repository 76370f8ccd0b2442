"""
Error kinds raised by the review export pipeline.
"""

from typing import Optional


class ReviewExportError(Exception):
    """Base class for all errors surfaced to the caller."""


class InvalidInputError(ReviewExportError):
    """Empty or unparseable product identifier or product URL."""


class HTTPStatusError(ReviewExportError):
    """Upstream answered with a non-success HTTP status."""

    kind = "HTTP error"

    def __init__(self, status: int, reason: str = ""):
        self.status = status
        self.reason = reason
        super().__init__(f"{self.kind}: {status} {reason}".rstrip())


class ClientError(HTTPStatusError):
    """4xx response. Never retried."""

    kind = "Client error"


class ServerError(HTTPStatusError):
    """5xx response. Retryable."""

    kind = "Server error"


class NetworkError(ReviewExportError):
    """Transport failure (connection refused, timeout, ...). Retryable."""


class UpstreamResponseError(ReviewExportError):
    """Response body could not be decoded as JSON."""


class ExhaustedRetriesError(ReviewExportError):
    """
    Terminal form of a retryable error once every attempt has failed.

    Raised from the last error seen, which is also kept on last_error.
    """

    def __init__(self, last_error: Exception, attempts: int):
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(str(last_error))

    @property
    def status(self) -> Optional[int]:
        return getattr(self.last_error, "status", None)
