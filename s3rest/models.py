"""Typed results returned by ``S3Client`` operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from collections.abc import Iterator

    from s3rest._client.ports import StreamingBody

# ------------------------------------------------------------------
# Buckets
# ------------------------------------------------------------------


class Owner(BaseModel):
    """Canonical owner of a bucket listing."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    display_name: str = ""


class Bucket(BaseModel):
    """Bucket name and creation time as reported by ``ListAllMyBuckets``."""

    model_config = ConfigDict(frozen=True)

    name: str
    creation_date: str = ""


class ListAllMyBuckets(BaseModel):
    """Result of ``list_buckets``."""

    model_config = ConfigDict(frozen=True)

    owner: Owner = Owner()
    buckets: list[Bucket] = []


# ------------------------------------------------------------------
# Listing
# ------------------------------------------------------------------


class S3Object(BaseModel):
    """One entry of a ``ListObjectsV2`` page."""

    model_config = ConfigDict(frozen=True)

    key: str
    size: int = 0
    etag: str = ""
    last_modified: str = ""
    storage_class: str = ""


class ListObjectsV2Page(BaseModel):
    """A single ``ListBucketResult`` page."""

    model_config = ConfigDict(frozen=True)

    name: str
    prefix: str = ""
    max_keys: int | None = None
    key_count: int = 0
    is_truncated: bool = False
    continuation_token: str | None = None
    next_continuation_token: str | None = None
    contents: list[S3Object] = []
    common_prefixes: list[str] = []


# ------------------------------------------------------------------
# Multipart upload
# ------------------------------------------------------------------


class StartMultipartUpload(BaseModel):
    """Result of ``start_multipart_upload``: the session's upload id."""

    model_config = ConfigDict(frozen=True)

    bucket: str
    key: str
    upload_id: str


class CompletedPart(BaseModel):
    """Part number and ETag, as listed in the completion manifest."""

    model_config = ConfigDict(frozen=True)

    part_number: int
    etag: str


class UploadPartResult(CompletedPart):
    """Result of ``upload_part``; collect these and pass them to ``complete``."""

    upload_id: str


class CompleteMultipartUpload(BaseModel):
    """Result of ``complete_multipart_upload``."""

    model_config = ConfigDict(frozen=True)

    location: str = ""
    bucket: str = ""
    key: str
    etag: str = ""


# ------------------------------------------------------------------
# Batch delete
# ------------------------------------------------------------------


class DeletedObject(BaseModel):
    """Per-key outcome of a batch delete.

    ``code`` and ``message`` are set only for keys the service failed to
    delete.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    code: str = ""
    message: str = ""

    @property
    def deleted(self) -> bool:
        """True when the service reported the key as deleted."""
        return not self.code


class BatchDeleteResult(BaseModel):
    """Result of ``batch_delete``.  Partial failure is a normal outcome."""

    model_config = ConfigDict(frozen=True)

    deleted_objects: list[DeletedObject] = []

    @property
    def errors(self) -> list[DeletedObject]:
        """Keys the service could not delete."""
        return [obj for obj in self.deleted_objects if not obj.deleted]

    @property
    def success(self) -> bool:
        """True when no key failed."""
        return not self.errors


# ------------------------------------------------------------------
# Objects
# ------------------------------------------------------------------


class CopyObjectResult(BaseModel):
    """Result of ``copy_object``."""

    model_config = ConfigDict(frozen=True)

    etag: str
    last_modified: str = ""


class PutObjectResult(BaseModel):
    """Result of ``put_object``."""

    model_config = ConfigDict(frozen=True)

    etag: str
    version_id: str | None = None


class HeadObjectResult(BaseModel):
    """Object metadata without the body."""

    model_config = ConfigDict(frozen=True)

    status: int
    size: int
    etag: str = ""
    last_modified: str = ""
    content_type: str = ""
    meta: dict[str, str] = {}


class GetObjectResult(HeadObjectResult):
    """Object metadata plus the fully buffered body."""

    body: bytes = b""

    @property
    def text(self) -> str:
        """Body decoded as UTF-8."""
        return self.body.decode("utf-8")


@dataclass(frozen=True)
class GetObjectStream:
    """Object metadata plus a live body, valid only inside its scope.

    Headers are decoded eagerly; the body is read on demand.  Once the
    enclosing ``open_object`` / ``get_object_stream`` scope exits the
    connection is released and the body must not be read again.
    """

    status: int
    size: int | None
    etag: str
    last_modified: str
    content_type: str
    meta: dict[str, str] = field(default_factory=dict)
    body_io: StreamingBody | None = field(default=None, repr=False)

    def read(self, amt: int | None = None) -> bytes:
        """Read up to *amt* bytes from the body (all remaining when ``None``)."""
        if self.body_io is None:
            return b""
        return self.body_io.read(amt)

    def iter_chunks(self, chunk_size: int = 1024 * 1024) -> Iterator[bytes]:
        """Yield the body in chunks of at most *chunk_size* bytes."""
        if self.body_io is None:
            return
        while True:
            chunk = self.body_io.read(chunk_size)
            if not chunk:
                return
            yield chunk
