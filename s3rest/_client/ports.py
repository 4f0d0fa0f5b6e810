"""Protocols defining the external collaborators of the pipeline.

``Signer`` is the seam to the signing algorithm, ``HttpClientFactory`` the
seam to the network.  In production they are satisfied by the botocore-backed
signers and ``urllib3.PoolManager``; in tests trivial fakes are used instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from s3rest._client.dtos import S3Request
    from s3rest._client.signers import Credentials
    from s3rest.endpoint import Endpoint


class Signer(Protocol):
    """Produces signature-augmented headers for a draft request."""

    def sign(
        self,
        request: S3Request,
        endpoint: Endpoint,
        credentials: Credentials,
        timestamp: datetime,
    ) -> dict[str, str]:
        """Return the final request headers (input headers plus auth headers).

        Deterministic for identical inputs, including *timestamp*.
        """
        ...


class StreamingBody(Protocol):
    """Readable response body that holds a network connection until released."""

    def read(self, amt: int | None = None) -> bytes:
        """Read up to *amt* bytes (everything when ``None``)."""
        ...

    def close(self) -> None:
        """Close the underlying file object."""
        ...

    def release_conn(self) -> None:
        """Hand the connection back to its pool."""
        ...


class HttpResponse(StreamingBody, Protocol):
    """Subset of ``urllib3.BaseHTTPResponse`` used by the transport."""

    status: int
    headers: Mapping[str, str]

    @property
    def data(self) -> bytes:
        """Fully read body (only meaningful when preloaded)."""
        ...


class HttpClient(Protocol):
    """Subset of ``urllib3.PoolManager`` used by the transport."""

    def urlopen(
        self,
        method: str,
        url: str,
        *,
        body: Any = None,  # noqa: ANN401
        headers: Mapping[str, str] | None = None,
        preload_content: bool = True,
        **kwargs: Any,  # noqa: ANN401
    ) -> HttpResponse:
        """Perform one HTTP exchange."""
        ...

    def clear(self) -> None:
        """Close all pooled connections."""
        ...


class HttpClientFactory(Protocol):
    """Builds the network client for an endpoint (e.g. a ``PoolManager``)."""

    def __call__(self, endpoint: Endpoint) -> HttpClient:
        """Return a client able to reach *endpoint*."""
        ...
