"""HTTP transport: URL assembly, signing, and the network call.

The transport never decides error semantics itself; any non-2xx status is
handed to :func:`s3rest._client.errors.map_error`.  It never retries.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

import urllib3
from loguru import logger
from urllib3 import HTTPHeaderDict

from s3rest._client.dtos import RawResponse, RawStreamResponse, S3Request
from s3rest._client.errors import is_success, map_error
from s3rest.exceptions import TransportError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from s3rest._client.dtos import QueryParams, RequestBody
    from s3rest._client.ports import (
        HttpClient,
        HttpClientFactory,
        HttpResponse,
        Signer,
    )
    from s3rest._client.signers import Credentials
    from s3rest.endpoint import Endpoint

Clock = Callable[[], datetime]

_DEFAULT_CONNECT_TIMEOUT = 10.0
_DEFAULT_READ_TIMEOUT = 60.0


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class DefaultHttpClientFactory:
    """Builds a ``urllib3.PoolManager`` with retries and redirects disabled."""

    def __init__(
        self,
        *,
        connect_timeout: float = _DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = _DEFAULT_READ_TIMEOUT,
        maxsize: int = 10,
    ) -> None:
        """Store pool settings; the pool itself is created per endpoint."""
        self._timeout = urllib3.Timeout(connect=connect_timeout, read=read_timeout)
        self._maxsize = maxsize

    def __call__(self, endpoint: Endpoint) -> HttpClient:
        """Return a new pool manager (the endpoint needs no special setup)."""
        logger.trace(f"Creating HTTP pool for {endpoint.base_url}")
        return urllib3.PoolManager(
            timeout=self._timeout,
            maxsize=self._maxsize,
            retries=False,
        )


def _body_length(body: RequestBody) -> int | None:
    """Byte length of *body*, or ``None`` when it cannot be known upfront."""
    if body is None:
        return None
    if isinstance(body, bytes):
        return len(body)
    try:
        position = body.tell()
        end = body.seek(0, os.SEEK_END)
        body.seek(position)
    except (AttributeError, OSError):
        return None
    return end - position


class Transport:
    """Signs and sends requests against one endpoint.

    Exposes buffered ``get/put/post/delete/head`` and a scoped streaming
    ``stream_get`` whose connection is released on every exit path.
    """

    def __init__(
        self,
        signer: Signer,
        endpoint: Endpoint,
        credentials: Credentials,
        client_factory: HttpClientFactory | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """Create the underlying network client through *client_factory*."""
        self._signer = signer
        self._endpoint = endpoint
        self._credentials = credentials
        self._clock = clock
        factory = client_factory or DefaultHttpClientFactory()
        self._client = factory(endpoint)

    @property
    def endpoint(self) -> Endpoint:
        """Endpoint every request is sent to."""
        return self._endpoint

    # ------------------------------------------------------------------
    # Buffered calls
    # ------------------------------------------------------------------

    def get(
        self,
        path: str,
        query: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RawResponse:
        """Send a GET and buffer the body."""
        return self.request("GET", path, query=query, headers=headers)

    def head(
        self,
        path: str,
        query: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RawResponse:
        """Send a HEAD."""
        return self.request("HEAD", path, query=query, headers=headers)

    def delete(
        self,
        path: str,
        query: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RawResponse:
        """Send a DELETE."""
        return self.request("DELETE", path, query=query, headers=headers)

    def put(
        self,
        path: str,
        query: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        body: RequestBody = None,
    ) -> RawResponse:
        """Send a PUT with an optional in-memory or streaming body."""
        return self.request("PUT", path, query=query, headers=headers, body=body)

    def post(
        self,
        path: str,
        query: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        body: RequestBody = None,
    ) -> RawResponse:
        """Send a POST with an optional body."""
        return self.request("POST", path, query=query, headers=headers, body=body)

    def request(
        self,
        method: str,
        path: str,
        *,
        query: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        body: RequestBody = None,
    ) -> RawResponse:
        """Send one request and return its buffered response.

        Raises the mapped ``ClientError``/``ServerError`` for any non-2xx
        status and ``TransportError`` when no response was received.
        """
        request = self._build_request(method, path, query, headers, body)
        response = self._send(request, preload_content=True)
        raw = RawResponse(
            status=response.status,
            headers=HTTPHeaderDict(response.headers),
            body=response.data or b"",
        )
        if not is_success(raw.status):
            raise map_error(raw)
        return raw

    # ------------------------------------------------------------------
    # Streaming call
    # ------------------------------------------------------------------

    @contextmanager
    def stream_get(
        self,
        path: str,
        query: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Iterator[RawStreamResponse]:
        """Send a GET and yield the response with its body still unread.

        The connection is closed and released when the ``with`` block
        exits, whether it completes, raises, or stops reading early.
        """
        request = self._build_request("GET", path, query, headers, None)
        response = self._send(request, preload_content=False)
        try:
            if not is_success(response.status):
                raw = RawResponse(
                    status=response.status,
                    headers=HTTPHeaderDict(response.headers),
                    body=response.read() or b"",
                )
                raise map_error(raw)
            yield RawStreamResponse(
                status=response.status,
                headers=HTTPHeaderDict(response.headers),
                stream=response,
            )
        finally:
            response.close()
            response.release_conn()
            logger.trace(f"Released connection for GET {request.target}")

    def close(self) -> None:
        """Close every pooled connection."""
        self._client.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _build_request(
        method: str,
        path: str,
        query: QueryParams | None,
        headers: Mapping[str, str] | None,
        body: RequestBody,
    ) -> S3Request:
        request_headers = HTTPHeaderDict(headers or {})
        length = _body_length(body)
        if "Content-Length" not in request_headers:
            if length is None and body is not None:
                raise ValidationError(
                    "Stream body has no known length; pass content_length "
                    "for streams that cannot seek."
                )
            if length is not None:
                request_headers["Content-Length"] = str(length)
        return S3Request(
            method=method,
            path=path,
            query=list(query or []),
            headers=request_headers,
            body=body,
        )

    def _send(self, request: S3Request, *, preload_content: bool) -> HttpResponse:
        signed_headers = self._signer.sign(
            request, self._endpoint, self._credentials, self._clock()
        )
        url = self._endpoint.url_for(request.target)
        logger.debug(f"{request.method} {url}")
        try:
            response = self._client.urlopen(
                request.method,
                url,
                body=request.body,
                headers=signed_headers,
                preload_content=preload_content,
                redirect=False,
            )
        except urllib3.exceptions.HTTPError as e:
            raise TransportError(f"{request.method} {url} failed: {e}") from e
        logger.debug(f"{request.method} {request.target} -> HTTP {response.status}")
        return response
