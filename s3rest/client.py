"""S3 client facade: one method per operation, composing the pipeline."""

from __future__ import annotations

import base64
import hashlib
from contextlib import contextmanager
from typing import IO, TYPE_CHECKING, Callable, TypeVar, Union

from loguru import logger

from s3rest._client.decoders import (
    decode_batch_delete,
    decode_complete_multipart_upload,
    decode_copy_object,
    decode_get_object,
    decode_get_object_stream,
    decode_head_object,
    decode_list_all_my_buckets,
    decode_put_object,
    decode_start_multipart_upload,
    decode_upload_part,
    expect_status,
)
from s3rest._client.dtos import encode_key
from s3rest._client.paginator import ListObjectsV2Paginator
from s3rest._client.signers import make_signer
from s3rest._client.transport import Transport, utc_now
from s3rest._client.xml_codec import (
    build_complete_multipart_upload,
    build_create_bucket_configuration,
    build_delete_manifest,
)
from s3rest.config import S3Config
from s3rest.endpoint import Endpoint
from s3rest.exceptions import ClientError, ValidationError
from s3rest.options import (
    ListObjectsOptions,
    ObjectWriteOptions,
    PutBucketOptions,
    RequestOptions,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from types import TracebackType

    from typing_extensions import Self

    from s3rest._client.ports import HttpClientFactory
    from s3rest._client.transport import Clock
    from s3rest.models import (
        BatchDeleteResult,
        CompletedPart,
        CompleteMultipartUpload,
        CopyObjectResult,
        GetObjectResult,
        GetObjectStream,
        HeadObjectResult,
        ListAllMyBuckets,
        PutObjectResult,
        StartMultipartUpload,
        UploadPartResult,
    )

_T = TypeVar("_T")

ObjectBody = Union[bytes, str, IO[bytes]]

MIN_PART_NUMBER = 1
MAX_PART_NUMBER = 10_000
MAX_BATCH_DELETE_KEYS = 1_000

_EXPECTED_PUT_BUCKET = 200
_EXPECTED_NO_CONTENT = 204


def object_path(bucket: str, key: str) -> str:
    """Path-style request path ``/{bucket}/{url-encoded key}``."""
    return f"/{bucket}/{encode_key(key)}"


def content_md5(body: bytes) -> str:
    """Base64-encoded MD5 digest, as sent in ``Content-MD5``."""
    return base64.b64encode(hashlib.md5(body).digest()).decode("ascii")  # noqa: S324


class S3Client:
    """Client for an S3-compatible REST endpoint.

    Can be used as a context manager to release pooled connections::

        with S3Client(S3Config(region="eu-west-1", access_key=..., secret_key=...)) as s3:
            s3.put_object("bucket", "key", b"data")
            for obj in s3.list_objects("bucket"):
                print(obj.key)

    Each call is synchronous; nothing is retried or cached.
    """

    def __init__(
        self,
        cfg: S3Config | None = None,
        client_factory: HttpClientFactory | None = None,
        *,
        clock: Clock = utc_now,
    ) -> None:
        """Resolve endpoint, signer and credentials once, for the client's lifetime.

        When *cfg* is ``None``, configuration is loaded automatically from
        environment variables and the config file via :meth:`S3Config.load`.
        *client_factory* builds the network client (tests pass a fake).
        """
        self._cfg = cfg or S3Config.load()
        self._endpoint = Endpoint.build(self._cfg.region, self._cfg.endpoint)
        self._http = Transport(
            make_signer(self._cfg.signer),
            self._endpoint,
            self._cfg.resolve_credentials(),
            client_factory,
            clock,
        )

    @property
    def endpoint(self) -> Endpoint:
        """Endpoint all requests go to."""
        return self._endpoint

    @property
    def region(self) -> str:
        """Region the client signs for."""
        return self._cfg.region

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> Self:
        """Return self; connections are opened lazily."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Release pooled connections."""
        self.close()

    def close(self) -> None:
        """Release pooled connections."""
        self._http.close()

    # ------------------------------------------------------------------
    # Buckets
    # ------------------------------------------------------------------

    def list_buckets(self) -> ListAllMyBuckets:
        """List all buckets owned by the credentials."""
        return decode_list_all_my_buckets(self._http.get("/"))

    def put_bucket(self, bucket: str, options: PutBucketOptions | None = None) -> bool:
        """Create a bucket, optionally in a given location.

        Returns ``True`` iff the service answered 200.
        """
        options = options or PutBucketOptions()
        body = None
        if options.location:
            body = build_create_bucket_configuration(options.location)
        resp = self._http.put(f"/{bucket}", headers=options.build_headers(), body=body)
        return expect_status(resp, _EXPECTED_PUT_BUCKET)

    def delete_bucket(self, bucket: str) -> bool:
        """Delete an (empty) bucket.  Returns ``True`` iff the service answered 204."""
        resp = self._http.delete(f"/{bucket}")
        return expect_status(resp, _EXPECTED_NO_CONTENT)

    def head_bucket(self, bucket: str) -> bool:
        """Return ``True`` if the bucket exists and is accessible.

        A missing or forbidden bucket raises ``ClientError`` (404 / 403).
        """
        self._http.head(f"/{bucket}")
        return True

    # ------------------------------------------------------------------
    # Multipart upload
    # ------------------------------------------------------------------

    def start_multipart_upload(
        self,
        bucket: str,
        key: str,
        options: ObjectWriteOptions | None = None,
    ) -> StartMultipartUpload:
        """Start a multipart upload and return its upload id."""
        options = options or ObjectWriteOptions()
        resp = self._http.post(
            object_path(bucket, key),
            query=[("uploads", None)],
            headers=options.build_headers(),
        )
        return decode_start_multipart_upload(resp)

    def upload_part(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        part_number: int,
        part: ObjectBody,
        *,
        content_length: int | None = None,
    ) -> UploadPartResult:
        """Upload one part.  Parts are independent; upload them in any order.

        *part_number* must be in ``[1, 10000]``.  *content_length* is needed
        only when *part* is a stream that cannot seek.  A failed part is not
        retried here.
        """
        if not MIN_PART_NUMBER <= part_number <= MAX_PART_NUMBER:
            raise ValidationError(
                f"Part number must be between {MIN_PART_NUMBER} and "
                f"{MAX_PART_NUMBER} (got {part_number})."
            )
        headers: dict[str, str] = {}
        if content_length is not None:
            headers["Content-Length"] = str(content_length)
        resp = self._http.put(
            object_path(bucket, key),
            query=[("partNumber", str(part_number)), ("uploadId", upload_id)],
            headers=headers,
            body=_as_body(part),
        )
        return decode_upload_part(resp, part_number, upload_id)

    def complete_multipart_upload(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> CompleteMultipartUpload:
        """Ask the service to assemble the uploaded parts.

        *parts* are serialized exactly in the given order: they are neither
        sorted nor checked for ascending part numbers.
        """
        body = build_complete_multipart_upload(parts)
        resp = self._http.post(
            object_path(bucket, key),
            query=[("uploadId", upload_id)],
            body=body,
        )
        return decode_complete_multipart_upload(resp)

    def abort_multipart_upload(self, bucket: str, key: str, upload_id: str) -> bool:
        """Abort an upload and discard its parts.

        Returns ``True`` iff the service answered 204.  An upload the
        service no longer knows (``NoSuchUpload``) counts as aborted, so
        repeating the call is safe.
        """
        try:
            resp = self._http.delete(
                object_path(bucket, key), query=[("uploadId", upload_id)]
            )
        except ClientError as e:
            if e.code == "NoSuchUpload":
                logger.debug(f"Upload {upload_id!r} already gone; abort is a no-op")
                return True
            raise
        return expect_status(resp, _EXPECTED_NO_CONTENT)

    # ------------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------------

    def delete_object(
        self,
        bucket: str,
        key: str,
        options: RequestOptions | None = None,
    ) -> bool:
        """Delete one object.  Returns ``True`` iff the service answered 204."""
        options = options or RequestOptions()
        resp = self._http.delete(object_path(bucket, key), headers=options.build_headers())
        return expect_status(resp, _EXPECTED_NO_CONTENT)

    def batch_delete(self, bucket: str, keys: Sequence[str]) -> BatchDeleteResult:
        """Delete up to 1000 keys in one request.

        Keys the service fails to delete are reported in the result, not
        raised.  An empty or oversized key list raises ``ValidationError``
        before anything is sent.
        """
        size = len(keys)
        if size == 0:
            raise ValidationError(
                "Batch delete failed: no keys provided. Provide at least one key."
            )
        if size > MAX_BATCH_DELETE_KEYS:
            raise ValidationError(
                f"Batch delete failed: maximum of {MAX_BATCH_DELETE_KEYS} keys "
                f"allowed (got {size})."
            )
        body = build_delete_manifest(keys)
        headers = {
            "Content-MD5": content_md5(body),
            "Content-Length": str(len(body)),
        }
        logger.bind(bucket=bucket, key_count=size, body=body.decode("utf-8")).debug(
            f"Deleting {size} key(s) from bucket {bucket!r}"
        )
        resp = self._http.post(
            f"/{bucket}", query=[("delete", None)], headers=headers, body=body
        )
        return decode_batch_delete(resp)

    def copy_object(
        self,
        bucket: str,
        source: str,
        destination: str,
        options: RequestOptions | None = None,
    ) -> CopyObjectResult:
        """Copy *source* to *destination* within *bucket*."""
        options = options or RequestOptions()
        headers = options.build_headers()
        headers["x-amz-copy-source"] = object_path(bucket, source)
        resp = self._http.put(object_path(bucket, destination), headers=headers, body=b"")
        return decode_copy_object(resp)

    def put_object(
        self,
        bucket: str,
        key: str,
        body: ObjectBody,
        options: ObjectWriteOptions | None = None,
    ) -> PutObjectResult:
        """Upload an object.  A file object is streamed, not buffered."""
        options = options or ObjectWriteOptions()
        resp = self._http.put(
            object_path(bucket, key),
            headers=options.build_headers(),
            body=_as_body(body),
        )
        return decode_put_object(resp)

    def get_object(
        self,
        bucket: str,
        key: str,
        options: RequestOptions | None = None,
    ) -> GetObjectResult:
        """Download an object, buffering the whole body in memory."""
        options = options or RequestOptions()
        resp = self._http.get(object_path(bucket, key), headers=options.build_headers())
        return decode_get_object(resp)

    @contextmanager
    def open_object(
        self,
        bucket: str,
        key: str,
        options: RequestOptions | None = None,
    ) -> Iterator[GetObjectStream]:
        """Open an object for streaming reads within a ``with`` block::

            with s3.open_object("bucket", "big.bin") as obj:
                for chunk in obj.iter_chunks():
                    sink.write(chunk)

        The connection is released when the block exits, however it exits.
        """
        options = options or RequestOptions()
        with self._http.stream_get(
            object_path(bucket, key), headers=options.build_headers()
        ) as resp:
            yield decode_get_object_stream(resp)

    def get_object_stream(
        self,
        bucket: str,
        key: str,
        handler: Callable[[GetObjectStream], _T],
        options: RequestOptions | None = None,
    ) -> _T:
        """Call *handler* with a streaming view of the object; return its result.

        The stream is valid only during the call.  The connection is
        released when *handler* returns or raises, even if it read only
        part of the body.
        """
        with self.open_object(bucket, key, options) as obj:
            return handler(obj)

    def head_object(
        self,
        bucket: str,
        key: str,
        options: RequestOptions | None = None,
    ) -> HeadObjectResult:
        """Fetch object metadata (size, ETag, ``x-amz-meta-*``) without the body."""
        options = options or RequestOptions()
        resp = self._http.head(object_path(bucket, key), headers=options.build_headers())
        return decode_head_object(resp)

    def list_objects(
        self,
        bucket: str,
        options: ListObjectsOptions | None = None,
    ) -> ListObjectsV2Paginator:
        """Lazily iterate the objects of *bucket*, page by page.

        Nothing is requested until iteration starts.
        """
        options = options or ListObjectsOptions()
        return ListObjectsV2Paginator(
            self._http,
            bucket,
            prefix=options.prefix,
            max_keys=options.max_keys,
        )


def _as_body(body: ObjectBody) -> bytes | IO[bytes]:
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, (bytearray, memoryview)):
        return bytes(body)
    return body


__all__ = ["S3Client", "content_md5", "object_path"]
