"""Custom exception hierarchy for s3rest.

All library-specific exceptions inherit from ``S3RestError`` so consumers
can catch ``except S3RestError`` to handle any s3rest failure.
"""

from __future__ import annotations


class S3RestError(Exception):
    """Base exception for all s3rest errors."""


class ValidationError(S3RestError, ValueError):
    """Raised before any network call when a request is malformed."""


class ConfigurationError(S3RestError):
    """Raised when no usable credentials or settings can be resolved."""


class DecodeError(S3RestError):
    """Raised when a successful response does not have the expected shape."""


class HttpError(S3RestError):
    """A request that reached the service and was answered with an error.

    ``code`` and ``message`` come from the XML error document when the
    service sent one; otherwise ``code`` is ``None`` and ``message`` is the
    HTTP reason phrase.
    """

    def __init__(
        self,
        status: int | None,
        code: str | None = None,
        message: str | None = None,
        *,
        request_id: str | None = None,
        resource: str | None = None,
    ) -> None:
        """Store the status code and any server-reported error details."""
        self.status = status
        self.code = code
        self.message = message
        self.request_id = request_id
        self.resource = resource
        super().__init__(self._describe())

    def _describe(self) -> str:
        head = f"HTTP {self.status}" if self.status is not None else "Request failed"
        detail = " ".join(p for p in (self.code, self.message) if p)
        text = f"{head}: {detail}" if detail else head
        if self.resource:
            text += f" (resource: {self.resource})"
        return text


class ClientError(HttpError):
    """The service rejected the request (4xx and other non-5xx statuses)."""


class ServerError(HttpError):
    """The service failed to handle the request (5xx)."""


class TransportError(ServerError):
    """The request never produced a response (connection or protocol failure)."""

    def __init__(self, message: str) -> None:
        """Wrap a low-level network failure message."""
        super().__init__(None, None, message)
