"""Internal helpers for splitting `s3rest.client` responsibilities."""

from s3rest._client.dtos import (
    PaginationCursor,
    RawResponse,
    RawStreamResponse,
    S3Request,
)
from s3rest._client.paginator import ListingStrategy, ListObjectsV2Paginator
from s3rest._client.ports import HttpClient, HttpClientFactory, Signer
from s3rest._client.signers import Credentials, SignerVersion, make_signer
from s3rest._client.transport import DefaultHttpClientFactory, Transport

__all__ = [
    "Credentials",
    "DefaultHttpClientFactory",
    "HttpClient",
    "HttpClientFactory",
    "ListObjectsV2Paginator",
    "ListingStrategy",
    "PaginationCursor",
    "RawResponse",
    "RawStreamResponse",
    "S3Request",
    "Signer",
    "SignerVersion",
    "Transport",
    "make_signer",
]
