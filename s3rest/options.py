"""Per-operation option structures with documented defaults.

Every ``S3Client`` method that accepts optional settings takes one of
these frozen dataclasses instead of loose keyword arguments.  Omitting the
options object is the same as passing the default instance.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from s3rest._client.decoders import METADATA_PREFIX


@dataclass(frozen=True)
class RequestOptions:
    """Extra request headers, sent as given (default: none)."""

    headers: dict[str, str] = field(default_factory=dict)

    def build_headers(self) -> dict[str, str]:
        """Headers to send for this request."""
        return dict(self.headers)


@dataclass(frozen=True)
class PutBucketOptions(RequestOptions):
    """Options for ``put_bucket``.

    ``location`` places the bucket in a region by sending a
    ``CreateBucketConfiguration`` body; ``None`` (default) sends no body.
    """

    location: str | None = None


@dataclass(frozen=True)
class ObjectWriteOptions(RequestOptions):
    """Options for requests that create an object.

    ``content_type`` defaults to unset (the service picks
    ``binary/octet-stream``); ``metadata`` entries are sent as
    ``x-amz-meta-<name>`` headers.  ``content_length`` (default: unset) is
    required only for a stream that cannot seek, whose size is otherwise
    unknown before sending.
    """

    content_type: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    content_length: int | None = None

    def build_headers(self) -> dict[str, str]:
        """Explicit headers plus content type and metadata headers."""
        headers = super().build_headers()
        if self.content_type:
            headers["Content-Type"] = self.content_type
        for name, value in self.metadata.items():
            headers[f"{METADATA_PREFIX}{name}"] = value
        if self.content_length is not None:
            headers["Content-Length"] = str(self.content_length)
        return headers


@dataclass(frozen=True)
class ListObjectsOptions:
    """Options for ``list_objects``.

    ``prefix`` (default: none) restricts keys; ``max_keys`` (default: the
    service's own page size, 1000 on AWS) caps each page, not the total.
    """

    prefix: str | None = None
    max_keys: int | None = None
