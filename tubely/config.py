"""Server configuration and asset path helpers."""

from __future__ import annotations

import base64
import os
import secrets
from dataclasses import dataclass
from typing import Mapping, Optional


class ConfigError(Exception):
    """Raised when required configuration is missing."""


_REQUIRED = (
    ("DB_PATH", "db_path", "DB_URL must be set"),
    ("JWT_SECRET", "jwt_secret", "JWT_SECRET environment variable is not set"),
    ("PLATFORM", "platform", "PLATFORM environment variable is not set"),
    ("FILEPATH_ROOT", "filepath_root", "FILEPATH_ROOT environment variable is not set"),
    ("ASSETS_ROOT", "assets_root", "ASSETS_ROOT environment variable is not set"),
    ("S3_BUCKET", "s3_bucket", "S3_BUCKET environment variable is not set"),
    ("S3_REGION", "s3_region", "S3_REGION environment variable is not set"),
    ("S3_CF_DISTRO", "s3_cf_distribution", "S3_CF_DISTRO environment variable is not set"),
    ("PORT", "port", "PORT environment variable is not set"),
)


@dataclass(frozen=True)
class Config:
    """Settings read from the environment."""

    db_path: str
    jwt_secret: str
    platform: str
    filepath_root: str
    assets_root: str
    s3_bucket: str
    s3_region: str
    s3_cf_distribution: str
    port: str

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Build a config; every variable is required and must be non-empty."""
        env = os.environ if environ is None else environ
        values = {}
        for name, field_name, message in _REQUIRED:
            value = env.get(name, "")
            if not value:
                raise ConfigError(message)
            values[field_name] = value
        return cls(**values)

    def ensure_assets_dir(self) -> None:
        if not os.path.exists(self.assets_root):
            os.mkdir(self.assets_root, 0o755)

    def object_url(self, key: str) -> str:
        return f"https://{self.s3_bucket}.s3.{self.s3_region}.amazonaws.com/{key}"

    def asset_disk_path(self, asset_path: str) -> str:
        return os.path.join(self.assets_root, asset_path)

    def asset_url(self, asset_path: str) -> str:
        return f"http://localhost:{self.port}/assets/{asset_path}"


def media_type_to_ext(media_type: str) -> str:
    """Map ``type/subtype`` to ``.subtype``; anything else to ``.bin``."""
    parts = media_type.split("/")
    if len(parts) != 2:
        return ".bin"
    return "." + parts[1]


def get_asset_path(media_type: str) -> str:
    """Return a random, URL-safe file name with an extension for the media type."""
    name = base64.urlsafe_b64encode(secrets.token_bytes(32)).rstrip(b"=").decode("ascii")
    return name + media_type_to_ext(media_type)