"""Configuration loading with priority: env > config file > defaults."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import boto3
import yaml
from botocore.exceptions import ProfileNotFound
from loguru import logger
from pydantic import BaseModel

from s3rest._client.signers import Credentials
from s3rest.endpoint import DEFAULT_REGION
from s3rest.exceptions import ConfigurationError

CONFIG_DIR = Path.home() / ".config" / "s3rest"
CONFIG_PATH = CONFIG_DIR / "config.yaml"
CONFIG_SECTION = "s3"


def get_config_path(config_path: Path | None = None) -> Path:
    """Return path to config file.

    Uses *config_path* if provided, otherwise S3REST_CONFIG env var,
    otherwise default CONFIG_PATH.
    """
    if config_path is not None:
        return config_path
    path = os.environ.get("S3REST_CONFIG")
    return Path(path) if path else CONFIG_PATH


def _load_raw_yaml(path: Path) -> dict[str, object]:
    """Load a YAML file and return its top-level mapping (or empty dict)."""
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        logger.warning(f"Invalid config format in {path}; expected mapping.")
        return {}
    return data


class S3Config(BaseModel):
    """Connection settings for one S3-compatible service."""

    region: str = DEFAULT_REGION
    access_key: str | None = None
    secret_key: str | None = None
    session_token: str | None = None
    endpoint: str | None = None
    signer: Literal["v2", "v4"] = "v4"
    profile: str | None = None

    @classmethod
    def _from_section(cls, data: dict[str, object]) -> S3Config:
        """Build from a raw YAML top-level dict (reads the ``s3`` key)."""
        section = data.get(CONFIG_SECTION, {})
        if not isinstance(section, dict):
            return cls()
        return cls(**{k: v for k, v in section.items() if k in cls.model_fields})

    @classmethod
    def from_file(cls, path: Path = CONFIG_PATH) -> S3Config:
        """Load config from a YAML file.  Returns empty config if file is missing."""
        if not path.is_file():
            return cls()
        logger.trace(f"Loading config from {path}")
        return cls._from_section(_load_raw_yaml(path))

    @classmethod
    def from_env(cls) -> S3Config:
        """Build config from environment variables (unset ones stay default)."""
        values: dict[str, str] = {}
        env_map = {
            "region": ("AWS_REGION", "AWS_DEFAULT_REGION"),
            "access_key": ("AWS_ACCESS_KEY_ID",),
            "secret_key": ("AWS_SECRET_ACCESS_KEY",),
            "session_token": ("AWS_SESSION_TOKEN",),
            "endpoint": ("S3REST_ENDPOINT",),
            "signer": ("S3REST_SIGNER",),
            "profile": ("AWS_PROFILE",),
        }
        for field_name, env_names in env_map.items():
            for env_name in env_names:
                value = os.environ.get(env_name)
                if value:
                    values[field_name] = value
                    break
        return cls(**values)

    def merge(self, override: S3Config) -> S3Config:
        """Return a new config where explicitly set *override* values win."""
        return self.model_copy(update=override.model_dump(exclude_unset=True))

    @classmethod
    def load(cls, config_path: Path | None = None) -> S3Config:
        """Merge file and env: defaults < file < env."""
        file_cfg = cls.from_file(get_config_path(config_path))
        return file_cfg.merge(cls.from_env())

    def resolve_credentials(self) -> Credentials:
        """Return explicit keys, or fall back to the boto3 credential chain.

        The chain covers the shared credentials file, ``profile``, and
        instance roles.  Raises ``ConfigurationError`` when nothing resolves.
        """
        if self.access_key and self.secret_key:
            return Credentials(self.access_key, self.secret_key, self.session_token)
        try:
            session = boto3.Session(profile_name=self.profile)
        except ProfileNotFound as e:
            raise ConfigurationError(str(e)) from e
        creds = session.get_credentials()
        if creds is None:
            raise ConfigurationError(
                "No S3 credentials found. Set AWS_ACCESS_KEY_ID / "
                "AWS_SECRET_ACCESS_KEY, the config file, or a boto3 profile."
            )
        frozen = creds.get_frozen_credentials()
        logger.trace(f"Using credentials from boto3 (profile={self.profile or 'default'})")
        return Credentials(frozen.access_key, frozen.secret_key, frozen.token)

    def save_to_file(self, path: Path | None = None) -> Path:
        """Write the ``s3`` section, preserving any other sections."""
        path = get_config_path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        existing = _load_raw_yaml(path)
        existing[CONFIG_SECTION] = self.model_dump(exclude_none=True)
        content = yaml.safe_dump(existing, default_flow_style=False, sort_keys=False)
        if not content.endswith("\n"):
            content += "\n"
        path.write_text(content, encoding="utf-8")
        logger.info(f"Config saved to {path}")
        return path
