"""Response decoders: one pure function per operation.

Each decoder turns a successful ``RawResponse`` into a typed result from
:mod:`s3rest.models`, or raises ``DecodeError`` when a required field is
absent or malformed.  Optional headers are tolerated.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from s3rest._client.errors import raise_for_embedded_error
from s3rest._client.xml_codec import child_text, parse_document, required_text
from s3rest.exceptions import DecodeError
from s3rest.models import (
    BatchDeleteResult,
    Bucket,
    CompleteMultipartUpload,
    CopyObjectResult,
    DeletedObject,
    GetObjectResult,
    GetObjectStream,
    HeadObjectResult,
    ListAllMyBuckets,
    ListObjectsV2Page,
    Owner,
    PutObjectResult,
    S3Object,
    StartMultipartUpload,
    UploadPartResult,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from s3rest._client.dtos import RawResponse, RawStreamResponse

METADATA_PREFIX = "x-amz-meta-"


# ------------------------------------------------------------------
# Header helpers
# ------------------------------------------------------------------


def collect_metadata(headers: Mapping[str, str]) -> dict[str, str]:
    """Collect ``x-amz-meta-*`` headers into ``{name: value}`` (prefix removed)."""
    return {
        name[len(METADATA_PREFIX) :].lower(): value
        for name, value in headers.items()
        if name.lower().startswith(METADATA_PREFIX)
    }


def _required_header(headers: Mapping[str, str], name: str) -> str:
    value = headers.get(name)
    if value is None:
        raise DecodeError(f"Response is missing required header {name!r}")
    return value


def _int_header(headers: Mapping[str, str], name: str) -> int | None:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError as e:
        raise DecodeError(f"Header {name!r} is not an integer: {value!r}") from e


def _int_text(value: str | None, field: str) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError as e:
        raise DecodeError(f"<{field}> is not an integer: {value!r}") from e


def expect_status(response: RawResponse, expected: int) -> bool:
    """Success check for operations signaled purely by status code."""
    if response.status != expected:
        logger.debug(f"Expected HTTP {expected}, got HTTP {response.status}")
        return False
    return True


# ------------------------------------------------------------------
# Buckets and listing
# ------------------------------------------------------------------


def decode_list_all_my_buckets(response: RawResponse) -> ListAllMyBuckets:
    """``ListAllMyBucketsResult`` -> owner and bucket names."""
    root = parse_document(response.body, "ListAllMyBucketsResult")
    owner_node = root.find("Owner")
    owner = Owner()
    if owner_node is not None:
        owner = Owner(
            id=child_text(owner_node, "ID") or "",
            display_name=child_text(owner_node, "DisplayName") or "",
        )
    buckets_node = root.find("Buckets")
    buckets = [
        Bucket(
            name=required_text(node, "Name"),
            creation_date=child_text(node, "CreationDate") or "",
        )
        for node in (buckets_node.findall("Bucket") if buckets_node is not None else [])
    ]
    return ListAllMyBuckets(owner=owner, buckets=buckets)


def decode_list_objects_v2(response: RawResponse) -> ListObjectsV2Page:
    """``ListBucketResult`` (list-type 2) -> one page.

    A truncated page without a ``NextContinuationToken`` cannot be
    continued and is rejected.
    """
    root = parse_document(response.body, "ListBucketResult")
    is_truncated = (child_text(root, "IsTruncated") or "false").lower() == "true"
    next_token = child_text(root, "NextContinuationToken")
    if is_truncated and not next_token:
        raise DecodeError("Truncated listing page has no <NextContinuationToken>")
    contents = [
        S3Object(
            key=required_text(node, "Key"),
            size=_int_text(child_text(node, "Size"), "Size") or 0,
            etag=child_text(node, "ETag") or "",
            last_modified=child_text(node, "LastModified") or "",
            storage_class=child_text(node, "StorageClass") or "",
        )
        for node in root.findall("Contents")
    ]
    common_prefixes = [
        required_text(node, "Prefix") for node in root.findall("CommonPrefixes")
    ]
    return ListObjectsV2Page(
        name=required_text(root, "Name"),
        prefix=child_text(root, "Prefix") or "",
        max_keys=_int_text(child_text(root, "MaxKeys"), "MaxKeys"),
        key_count=_int_text(child_text(root, "KeyCount"), "KeyCount") or len(contents),
        is_truncated=is_truncated,
        continuation_token=child_text(root, "ContinuationToken"),
        next_continuation_token=next_token,
        contents=contents,
        common_prefixes=common_prefixes,
    )


# ------------------------------------------------------------------
# Multipart upload
# ------------------------------------------------------------------


def decode_start_multipart_upload(response: RawResponse) -> StartMultipartUpload:
    """``InitiateMultipartUploadResult`` -> upload id."""
    root = parse_document(response.body, "InitiateMultipartUploadResult")
    upload_id = required_text(root, "UploadId")
    if not upload_id:
        raise DecodeError("<UploadId> is empty")
    return StartMultipartUpload(
        bucket=child_text(root, "Bucket") or "",
        key=child_text(root, "Key") or "",
        upload_id=upload_id,
    )


def decode_upload_part(
    response: RawResponse,
    part_number: int,
    upload_id: str,
) -> UploadPartResult:
    """Upload-part confirmation lives only in the ``ETag`` header."""
    return UploadPartResult(
        part_number=part_number,
        etag=_required_header(response.headers, "ETag"),
        upload_id=upload_id,
    )


def decode_complete_multipart_upload(
    response: RawResponse,
) -> CompleteMultipartUpload:
    """``CompleteMultipartUploadResult`` -> location, key and ETag."""
    raise_for_embedded_error(response)
    root = parse_document(response.body, "CompleteMultipartUploadResult")
    return CompleteMultipartUpload(
        location=child_text(root, "Location") or "",
        bucket=child_text(root, "Bucket") or "",
        key=required_text(root, "Key"),
        etag=child_text(root, "ETag") or "",
    )


# ------------------------------------------------------------------
# Batch delete
# ------------------------------------------------------------------


def decode_batch_delete(response: RawResponse) -> BatchDeleteResult:
    """``DeleteResult`` -> per-key outcomes, in document order."""
    root = parse_document(response.body, "DeleteResult")
    outcomes: list[DeletedObject] = []
    for node in root:
        if node.tag == "Deleted":
            outcomes.append(DeletedObject(key=required_text(node, "Key")))
        elif node.tag == "Error":
            outcomes.append(
                DeletedObject(
                    key=required_text(node, "Key"),
                    code=required_text(node, "Code"),
                    message=child_text(node, "Message") or "",
                )
            )
    return BatchDeleteResult(deleted_objects=outcomes)


# ------------------------------------------------------------------
# Objects
# ------------------------------------------------------------------


def decode_copy_object(response: RawResponse) -> CopyObjectResult:
    """``CopyObjectResult`` -> ETag and modification time."""
    raise_for_embedded_error(response)
    root = parse_document(response.body, "CopyObjectResult")
    return CopyObjectResult(
        etag=required_text(root, "ETag"),
        last_modified=child_text(root, "LastModified") or "",
    )


def decode_put_object(response: RawResponse) -> PutObjectResult:
    """Put confirmation lives only in the ``ETag`` header."""
    return PutObjectResult(
        etag=_required_header(response.headers, "ETag"),
        version_id=response.headers.get("x-amz-version-id"),
    )


def decode_head_object(response: RawResponse) -> HeadObjectResult:
    """Object metadata headers; ``Content-Length`` is required."""
    size = _int_header(response.headers, "Content-Length")
    if size is None:
        raise DecodeError("Response is missing required header 'Content-Length'")
    return HeadObjectResult(
        status=response.status,
        size=size,
        etag=response.headers.get("ETag", ""),
        last_modified=response.headers.get("Last-Modified", ""),
        content_type=response.headers.get("Content-Type", ""),
        meta=collect_metadata(response.headers),
    )


def decode_get_object(response: RawResponse) -> GetObjectResult:
    """Object metadata headers plus the buffered body."""
    size = _int_header(response.headers, "Content-Length")
    return GetObjectResult(
        status=response.status,
        size=size if size is not None else len(response.body),
        etag=response.headers.get("ETag", ""),
        last_modified=response.headers.get("Last-Modified", ""),
        content_type=response.headers.get("Content-Type", ""),
        meta=collect_metadata(response.headers),
        body=response.body,
    )


def decode_get_object_stream(response: RawStreamResponse) -> GetObjectStream:
    """Decode headers eagerly; the body is left on the wire for the caller."""
    return GetObjectStream(
        status=response.status,
        size=_int_header(response.headers, "Content-Length"),
        etag=response.headers.get("ETag", ""),
        last_modified=response.headers.get("Last-Modified", ""),
        content_type=response.headers.get("Content-Type", ""),
        meta=collect_metadata(response.headers),
        body_io=response.stream,
    )
