"""Typed data-transfer objects for the request/response pipeline.

These simple dataclasses describe what travels over the wire, providing a
typed boundary that is trivial to construct in tests.

Domain-level results returned to callers live in :mod:`s3rest.models`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import IO, TYPE_CHECKING, Union
from urllib.parse import quote

from urllib3 import HTTPHeaderDict

if TYPE_CHECKING:
    from s3rest._client.ports import StreamingBody

RequestBody = Union[bytes, IO[bytes], None]
"""Absent, in-memory bytes, or a readable binary stream."""

QueryParams = list[tuple[str, Union[str, None]]]
"""Ordered query parameters; ``None`` values render as a bare key (``?uploads``)."""


def encode_key(key: str) -> str:
    """Percent-encode an object key for use in a path (``/`` is kept)."""
    return quote(key, safe="/~")


def encode_query(query: QueryParams) -> str:
    """Render *query* in the given order; bare keys have no ``=``."""
    parts: list[str] = []
    for name, value in query:
        encoded_name = quote(name, safe="-_.~")
        if value is None:
            parts.append(encoded_name)
        else:
            parts.append(f"{encoded_name}={quote(value, safe='-_.~')}")
    return "&".join(parts)


@dataclass
class S3Request:
    """Draft request handed to the signer and then to the HTTP client."""

    method: str
    path: str
    query: QueryParams = field(default_factory=list)
    headers: HTTPHeaderDict = field(default_factory=HTTPHeaderDict)
    body: RequestBody = None

    @property
    def target(self) -> str:
        """Path plus encoded query string, as sent on the request line."""
        if not self.query:
            return self.path
        return f"{self.path}?{encode_query(self.query)}"

    @property
    def is_streaming(self) -> bool:
        """True when the body is a stream rather than in-memory bytes."""
        return self.body is not None and not isinstance(self.body, bytes)


@dataclass(frozen=True)
class RawResponse:
    """Status, headers and fully buffered body of a response."""

    status: int
    headers: HTTPHeaderDict
    body: bytes = b""

    @property
    def request_id(self) -> str | None:
        """Service-assigned request id, when present."""
        return self.headers.get("x-amz-request-id")


@dataclass(frozen=True)
class RawStreamResponse:
    """Status and headers of a response whose body is still on the wire."""

    status: int
    headers: HTTPHeaderDict
    stream: StreamingBody


@dataclass
class PaginationCursor:
    """Position of a listing between two page fetches.

    ``continuation_token`` is opaque: it is forwarded verbatim and never
    parsed.  An absent token on the first request means "start".
    """

    continuation_token: str | None = None
    is_truncated: bool = True
    max_keys: int | None = None
    prefix: str | None = None
