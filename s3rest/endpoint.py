"""Endpoint resolution: region (or an explicit override) to base URI."""

from __future__ import annotations

from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict

SERVICE_NAME = "s3"
DEFAULT_REGION = "us-east-1"


def resolve_endpoint(region: str, override: str | None = None) -> str:
    """Return the base URI for *region*.

    An *override* is returned verbatim, without validation.  The default
    region maps to the bare service host; every other region maps to the
    region-qualified host.
    """
    if override is not None:
        return override
    if region == DEFAULT_REGION:
        return f"https://{SERVICE_NAME}.amazonaws.com"
    return f"https://{SERVICE_NAME}-{region}.amazonaws.com"


class Endpoint(BaseModel):
    """Resolved service endpoint, immutable for the lifetime of a client."""

    model_config = ConfigDict(frozen=True)

    scheme: str
    host: str
    region: str

    @classmethod
    def build(cls, region: str, override: str | None = None) -> Endpoint:
        """Resolve and split the base URI into scheme and host (with port)."""
        parts = urlsplit(resolve_endpoint(region, override))
        return cls(scheme=parts.scheme or "https", host=parts.netloc, region=region)

    @property
    def base_url(self) -> str:
        """``scheme://host`` without a trailing slash."""
        return f"{self.scheme}://{self.host}"

    def url_for(self, target: str) -> str:
        """Join an already-encoded request target (path + query) to the base."""
        return self.base_url + target
