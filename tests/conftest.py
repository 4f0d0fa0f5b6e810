"""Shared pytest fixtures for s3rest tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import pytest

from s3rest.client import S3Client
from s3rest.config import S3Config
from tests.fixtures.fake_http import FakeHttpClient

if TYPE_CHECKING:
    from collections.abc import Iterator

FIXED_NOW = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

_ENV_VARS = (
    "AWS_REGION",
    "AWS_DEFAULT_REGION",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
    "AWS_PROFILE",
    "S3REST_ENDPOINT",
    "S3REST_SIGNER",
    "S3REST_CONFIG",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's AWS/s3rest environment out of every test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_http() -> FakeHttpClient:
    """Empty fake network client; tests queue responses on it."""
    return FakeHttpClient()


@pytest.fixture
def s3_config() -> S3Config:
    """Config with explicit test credentials."""
    return make_config()


@pytest.fixture
def s3(fake_http: FakeHttpClient, s3_config: S3Config) -> Iterator[S3Client]:
    """S3Client wired to the fake network client and a fixed clock."""
    with make_client(fake_http, s3_config) as client:
        yield client


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def fixed_clock() -> datetime:
    """Clock that always returns FIXED_NOW."""
    return FIXED_NOW


def make_config(**overrides: object) -> S3Config:
    """Create an S3Config with test credentials and optional overrides."""
    values: dict[str, object] = {
        "access_key": "AKIDEXAMPLE",
        "secret_key": "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
    }
    values.update(overrides)
    return S3Config(**values)  # type: ignore[arg-type]


def make_client(fake_http: FakeHttpClient, cfg: S3Config | None = None) -> S3Client:
    """Create an S3Client backed by *fake_http*."""
    return S3Client(cfg or make_config(), fake_http.factory, clock=fixed_clock)
