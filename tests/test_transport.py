"""Tests for the HTTP transport using the fake network client."""

from __future__ import annotations

import io

import pytest
import urllib3

from s3rest._client.signers import Credentials, make_signer
from s3rest._client.transport import Transport
from s3rest.endpoint import Endpoint
from s3rest.exceptions import ClientError, ServerError, TransportError, ValidationError
from tests.conftest import fixed_clock
from tests.fixtures.fake_http import FakeHttpClient, FakeResponse, error_response


def _transport(fake: FakeHttpClient, signer: str = "v4") -> Transport:
    return Transport(
        make_signer(signer),
        Endpoint.build("us-east-1"),
        Credentials("AKIDEXAMPLE", "secret"),
        fake.factory,
        fixed_clock,
    )


# ---------------------------------------------------------------------------
# Buffered requests
# ---------------------------------------------------------------------------


def test_get_builds_url_and_signs() -> None:
    """Path and ordered query are joined to the endpoint; auth headers sent."""
    fake = FakeHttpClient(FakeResponse(200, b"ok"))
    resp = _transport(fake).get("/bucket", query=[("list-type", "2"), ("prefix", "a b")])

    assert resp.status == 200
    assert resp.body == b"ok"
    req = fake.last
    assert req.method == "GET"
    assert req.url == "https://s3.amazonaws.com/bucket?list-type=2&prefix=a%20b"
    assert req.header("Authorization").startswith("AWS4-HMAC-SHA256 ")
    assert req.header("X-Amz-Date") == "20240102T030405Z"
    assert req.preload_content is True


def test_redirects_are_not_followed() -> None:
    """The transport asks urllib3 not to follow redirects."""
    fake = FakeHttpClient(FakeResponse(200))
    _transport(fake).head("/bucket")
    assert fake.last.kwargs["redirect"] is False


def test_bare_query_key_has_no_equals_sign() -> None:
    """Sub-resources such as ?uploads render without '='."""
    fake = FakeHttpClient(FakeResponse(200, b"<x/>"))
    _transport(fake).post("/b/k", query=[("uploads", None)])
    assert fake.last.url.endswith("/b/k?uploads")


def test_put_bytes_sets_content_length() -> None:
    """In-memory bodies carry their exact length."""
    fake = FakeHttpClient(FakeResponse(200))
    _transport(fake).put("/b/k", body=b"hello")
    assert fake.last.header("Content-Length") == "5"
    assert fake.last.body == b"hello"


def test_put_stream_sets_remaining_length() -> None:
    """Seekable streams send the bytes left from the current position."""
    stream = io.BytesIO(b"0123456789")
    stream.seek(4)
    fake = FakeHttpClient(FakeResponse(200))
    _transport(fake).put("/b/k", body=stream)
    assert fake.last.header("Content-Length") == "6"
    assert fake.last.body == b"456789"


class _PipeReader:
    """Readable body with no ``tell`` or ``seek``, like a pipe."""

    def __init__(self, data: bytes) -> None:
        self._fp = io.BytesIO(data)

    def read(self, amt: int = -1) -> bytes:
        return self._fp.read(amt)


def test_put_unsized_stream_is_rejected() -> None:
    """A stream of unknown length fails before anything is sent."""
    fake = FakeHttpClient(FakeResponse(200))
    with pytest.raises(ValidationError, match="no known length"):
        _transport(fake).put("/b/k", body=_PipeReader(b"hello"))  # type: ignore[arg-type]
    assert fake.requests == []


def test_put_unsized_stream_with_explicit_length() -> None:
    """A caller-supplied Content-Length lets the stream through."""
    fake = FakeHttpClient(FakeResponse(200))
    _transport(fake).put(
        "/b/k",
        headers={"Content-Length": "5"},
        body=_PipeReader(b"hello"),  # type: ignore[arg-type]
    )
    assert fake.last.header("Content-Length") == "5"
    assert fake.last.body == b"hello"


def test_v2_signer_is_used_when_configured() -> None:
    """The signer chosen at construction signs every request."""
    fake = FakeHttpClient(FakeResponse(204))
    _transport(fake, signer="v2").delete("/b/k")
    assert fake.last.header("Authorization").startswith("AWS AKIDEXAMPLE:")


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------


def test_4xx_raises_client_error_with_details() -> None:
    """Service error documents are parsed into the exception."""
    fake = FakeHttpClient(error_response(404, "NoSuchKey", "Gone", "/b/k"))
    with pytest.raises(ClientError) as exc_info:
        _transport(fake).get("/b/k")
    err = exc_info.value
    assert err.status == 404
    assert err.code == "NoSuchKey"
    assert err.message == "Gone"
    assert err.resource == "/b/k"
    assert err.request_id == "ERRREQ"


def test_5xx_without_body_raises_server_error() -> None:
    """An empty 5xx still carries the status and reason phrase."""
    fake = FakeHttpClient(FakeResponse(503))
    with pytest.raises(ServerError) as exc_info:
        _transport(fake).get("/b")
    assert exc_info.value.status == 503
    assert exc_info.value.code is None
    assert exc_info.value.message == "Service Unavailable"


def test_redirect_status_is_a_client_error() -> None:
    """Non-2xx, non-5xx statuses classify as client errors."""
    fake = FakeHttpClient(error_response(301, "PermanentRedirect"))
    with pytest.raises(ClientError) as exc_info:
        _transport(fake).get("/b")
    assert exc_info.value.status == 301


def test_network_failure_raises_transport_error() -> None:
    """A failure before any response is a TransportError with no status."""
    fake = FakeHttpClient(urllib3.exceptions.ProtocolError("Connection aborted."))
    with pytest.raises(TransportError) as exc_info:
        _transport(fake).get("/b")
    assert exc_info.value.status is None
    assert isinstance(exc_info.value, ServerError)
    assert isinstance(exc_info.value.__cause__, urllib3.exceptions.ProtocolError)


def test_failed_request_is_not_retried() -> None:
    """Exactly one network call per failing request."""
    fake = FakeHttpClient(FakeResponse(500), FakeResponse(200))
    with pytest.raises(ServerError):
        _transport(fake).get("/b")
    assert len(fake.requests) == 1


# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------


def test_stream_get_releases_after_full_read() -> None:
    """The connection is released once the block exits normally."""
    fake = FakeHttpClient(FakeResponse(200, b"abcdef"))
    with _transport(fake).stream_get("/b/k") as resp:
        assert resp.stream.read() == b"abcdef"
        assert fake.responses[0].release_calls == 0
    assert fake.last.preload_content is False
    assert fake.responses[0].release_calls == 1
    assert fake.responses[0].close_calls == 1


def test_stream_get_releases_on_early_exit() -> None:
    """Leaving the block after a partial read still releases."""
    fake = FakeHttpClient(FakeResponse(200, b"abcdef"))
    with _transport(fake).stream_get("/b/k") as resp:
        assert resp.stream.read(2) == b"ab"
    assert fake.responses[0].released


def test_stream_get_releases_on_exception() -> None:
    """An exception inside the block releases, then propagates."""
    fake = FakeHttpClient(FakeResponse(200, b"abcdef"))
    with pytest.raises(RuntimeError, match="boom"):  # noqa: PT012
        with _transport(fake).stream_get("/b/k"):
            raise RuntimeError("boom")
    assert fake.responses[0].released


def test_stream_get_error_status_releases_and_raises() -> None:
    """An error response is classified and its connection released."""
    fake = FakeHttpClient(error_response(403, "AccessDenied"))
    with pytest.raises(ClientError, match="AccessDenied"):  # noqa: PT012
        with _transport(fake).stream_get("/b/k"):
            pytest.fail("body must not be yielded for an error response")
    assert fake.responses[0].released


def test_close_clears_pool() -> None:
    """close() clears the underlying pool."""
    fake = FakeHttpClient()
    _transport(fake).close()
    assert fake.clear_calls == 1
