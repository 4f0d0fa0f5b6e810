"""s3rest -- client for S3-compatible object storage REST APIs."""

from s3rest._client.paginator import ListObjectsV2Paginator
from s3rest._client.ports import HttpClientFactory
from s3rest._client.signers import Credentials, SignerVersion
from s3rest.client import S3Client
from s3rest.config import S3Config
from s3rest.endpoint import Endpoint, resolve_endpoint
from s3rest.exceptions import (
    ClientError,
    ConfigurationError,
    DecodeError,
    HttpError,
    S3RestError,
    ServerError,
    TransportError,
    ValidationError,
)
from s3rest.models import (
    BatchDeleteResult,
    Bucket,
    CompletedPart,
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
from s3rest.options import (
    ListObjectsOptions,
    ObjectWriteOptions,
    PutBucketOptions,
    RequestOptions,
)

__all__ = [
    "BatchDeleteResult",
    "Bucket",
    "ClientError",
    "CompleteMultipartUpload",
    "CompletedPart",
    "ConfigurationError",
    "CopyObjectResult",
    "Credentials",
    "DecodeError",
    "DeletedObject",
    "Endpoint",
    "GetObjectResult",
    "GetObjectStream",
    "HeadObjectResult",
    "HttpClientFactory",
    "HttpError",
    "ListAllMyBuckets",
    "ListObjectsOptions",
    "ListObjectsV2Page",
    "ListObjectsV2Paginator",
    "ObjectWriteOptions",
    "Owner",
    "PutBucketOptions",
    "PutObjectResult",
    "RequestOptions",
    "S3Client",
    "S3Config",
    "S3Object",
    "S3RestError",
    "ServerError",
    "SignerVersion",
    "StartMultipartUpload",
    "TransportError",
    "UploadPartResult",
    "ValidationError",
    "resolve_endpoint",
]
