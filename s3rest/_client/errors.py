"""Classification of non-success responses into the s3rest error taxonomy."""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING

from loguru import logger

from s3rest._client.xml_codec import child_text, parse_document
from s3rest.exceptions import ClientError, DecodeError, HttpError, ServerError

if TYPE_CHECKING:
    from s3rest._client.dtos import RawResponse

_HTTP_2XX_MIN = 200
_HTTP_3XX_MIN = 300
_HTTP_5XX_MIN = 500


def is_success(status: int) -> bool:
    """True for any 2xx status."""
    return _HTTP_2XX_MIN <= status < _HTTP_3XX_MIN


def _reason_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Unknown status"


def _parse_error_document(
    body: bytes,
) -> tuple[str | None, str | None, str | None, str | None]:
    """Best-effort ``(code, message, request_id, resource)`` from ``<Error>``."""
    if not body.strip():
        return None, None, None, None
    try:
        root = parse_document(body, "Error")
    except DecodeError as e:
        logger.trace(f"Error body is not an S3 error document: {e}")
        return None, None, None, None
    return (
        child_text(root, "Code"),
        child_text(root, "Message"),
        child_text(root, "RequestId"),
        child_text(root, "Resource"),
    )


def map_error(response: RawResponse) -> HttpError:
    """Build the exception describing a non-success *response*.

    5xx maps to ``ServerError``; every other status maps to
    ``ClientError``.  The result always carries the status code, plus the
    service's code and message when the body is an ``<Error>`` document.
    """
    code, message, request_id, resource = _parse_error_document(response.body)
    error_cls = ServerError if response.status >= _HTTP_5XX_MIN else ClientError
    return error_cls(
        response.status,
        code,
        message if message is not None else _reason_phrase(response.status),
        request_id=request_id or response.request_id,
        resource=resource,
    )


def raise_for_embedded_error(response: RawResponse) -> None:
    """Raise when a 200 response carries an ``<Error>`` document.

    ``CompleteMultipartUpload`` may fail after the status line was sent,
    in which case the error is only visible in the body.
    """
    code, message, request_id, resource = _parse_error_document(response.body)
    if code is None:
        return
    error_cls = ServerError if code == "InternalError" else ClientError
    raise error_cls(
        response.status,
        code,
        message,
        request_id=request_id or response.request_id,
        resource=resource,
    )
