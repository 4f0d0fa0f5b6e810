"""Signing adapters backed by ``botocore.auth``.

This is the only module that imports botocore's signing machinery.  The
algorithm is chosen once, at client construction, from ``SignerVersion``;
nothing else in the pipeline branches on it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timezone
from email.utils import format_datetime
from enum import Enum
from typing import TYPE_CHECKING

from botocore.auth import SIGV4_TIMESTAMP, HmacV1Auth, S3SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.config import Config
from botocore.credentials import ReadOnlyCredentials
from loguru import logger

from s3rest.endpoint import SERVICE_NAME

if TYPE_CHECKING:
    from datetime import datetime

    from s3rest._client.dtos import S3Request
    from s3rest._client.ports import Signer
    from s3rest.endpoint import Endpoint


class SignerVersion(str, Enum):
    """Supported request signing algorithms."""

    V2 = "v2"
    V4 = "v4"


@dataclass(frozen=True)
class Credentials:
    """Access key pair with an optional session token.

    Callers pass the same type whether or not the credentials are
    temporary; signers add the security-token header only when it is set.
    """

    access_key: str
    secret_key: str
    session_token: str | None = None

    def __repr__(self) -> str:
        """Hide the secret parts."""
        return (
            f"Credentials(access_key={self.access_key!r}, secret_key='***', "
            f"session_token={'***' if self.session_token else None})"
        )

    def to_botocore(self) -> ReadOnlyCredentials:
        """Convert to the frozen credentials tuple botocore signs with."""
        return ReadOnlyCredentials(self.access_key, self.secret_key, self.session_token)


def _as_utc(timestamp: datetime) -> datetime:
    """Express *timestamp* in UTC; a naive value is taken to be UTC already."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


def _is_seekable(body: object) -> bool:
    seekable = getattr(body, "seekable", None)
    return bool(seekable()) if callable(seekable) else hasattr(body, "seek")


def _to_aws_request(request: S3Request, endpoint: Endpoint) -> AWSRequest:
    aws_request = AWSRequest(
        method=request.method,
        url=endpoint.url_for(request.target),
        headers=dict(request.headers.items()),
        data=request.body,
    )
    aws_request.context["has_streaming_input"] = request.is_streaming
    if request.is_streaming and not _is_seekable(request.body):
        # A one-shot stream cannot be hashed and rewound.
        aws_request.context["client_config"] = Config(
            s3={"payload_signing_enabled": False}
        )
    return aws_request


class _ClockedS3SigV4Auth(S3SigV4Auth):
    """``S3SigV4Auth`` that signs with a caller-supplied timestamp."""

    def __init__(
        self,
        credentials: ReadOnlyCredentials,
        region_name: str,
        timestamp: datetime,
    ) -> None:
        super().__init__(credentials, SERVICE_NAME, region_name)
        self._timestamp = _as_utc(timestamp)

    def add_auth(self, request: AWSRequest) -> None:
        request.context["timestamp"] = self._timestamp.strftime(SIGV4_TIMESTAMP)
        self._modify_request_before_signing(request)
        canonical_request = self.canonical_request(request)
        string_to_sign = self.string_to_sign(request, canonical_request)
        signature = self.signature(string_to_sign, request)
        self._inject_signature_to_request(request, signature)


class _ClockedHmacV1Auth(HmacV1Auth):
    """``HmacV1Auth`` whose ``Date`` header comes from a supplied timestamp."""

    def __init__(self, credentials: ReadOnlyCredentials, timestamp: datetime) -> None:
        super().__init__(credentials)
        self._timestamp = _as_utc(timestamp)

    def _get_date(self) -> str:
        return format_datetime(self._timestamp, usegmt=True)


class V4Signer:
    """AWS Signature Version 4, scoped to the endpoint's region."""

    version = SignerVersion.V4

    def sign(
        self,
        request: S3Request,
        endpoint: Endpoint,
        credentials: Credentials,
        timestamp: datetime,
    ) -> dict[str, str]:
        """Return the request headers plus ``Authorization`` and ``X-Amz-*``."""
        aws_request = _to_aws_request(request, endpoint)
        auth = _ClockedS3SigV4Auth(
            credentials.to_botocore(), endpoint.region, timestamp
        )
        auth.add_auth(aws_request)
        logger.trace(f"Signed {request.method} {request.target} with v4")
        return dict(aws_request.headers.items())


class V2Signer:
    """Legacy HMAC-SHA1 signature (``Authorization: AWS key:sig``)."""

    version = SignerVersion.V2

    def sign(
        self,
        request: S3Request,
        endpoint: Endpoint,
        credentials: Credentials,
        timestamp: datetime,
    ) -> dict[str, str]:
        """Return the request headers plus ``Authorization`` and ``Date``."""
        aws_request = _to_aws_request(request, endpoint)
        auth = _ClockedHmacV1Auth(credentials.to_botocore(), timestamp)
        auth.add_auth(aws_request)
        logger.trace(f"Signed {request.method} {request.target} with v2")
        return dict(aws_request.headers.items())


_SIGNERS: dict[SignerVersion, type[V2Signer] | type[V4Signer]] = {
    SignerVersion.V2: V2Signer,
    SignerVersion.V4: V4Signer,
}


def make_signer(version: SignerVersion | str) -> Signer:
    """Build the signer for *version* (``"v2"`` or ``"v4"``)."""
    return _SIGNERS[SignerVersion(version)]()
