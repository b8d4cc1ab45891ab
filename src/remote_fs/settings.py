"""
Settings and configuration for remote-fs.

Centralizes configuration values and provides validation with fail-fast behavior.
Settings are loaded from environment variables or from a backend config mapping
at backend construction time.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

__all__ = [
    "Settings",
    "create_settings_from_env",
    "create_settings_from_config",
    "MIN_PART_SIZE",
    "MAX_PART_SIZE",
    "DEFAULT_PART_SIZE",
    "DEFAULT_CHUNK_SIZE",
]

# S3 rejects non-final parts below 5 MiB and any part above 5 GiB
MIN_PART_SIZE = 5 * 1024 * 1024
MAX_PART_SIZE = 5 * 1024 * 1024 * 1024

DEFAULT_PART_SIZE = MIN_PART_SIZE
DEFAULT_CHUNK_SIZE = 5 * 1024 * 1024

_ADDRESSING_STYLES = ("auto", "path", "virtual")


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for remote-fs backends.

    S3 Connection Settings:
        s3_region: AWS region (defaults to us-east-1)
        s3_profile: Shared config profile; used when no static keys are given
        s3_access_key_id: Static access key id
        s3_secret_access_key: Static secret access key
        s3_session_token: Optional session token for temporary credentials
        s3_endpoint_url: Custom endpoint (MinIO, LocalStack, private clouds)
        s3_addressing_style: "auto", "path" or "virtual"
        http_timeout_s: Connect/read timeout for each remote call
        http_retry: Retries performed by the SDK (0=no retry)

    Streaming Settings:
        part_size: Write-side commit unit for multipart uploads
        chunk_size: Read-side prefetch unit for range-fetches
    """
    # S3 connection settings
    s3_region: str = "us-east-1"
    s3_profile: Optional[str] = None
    s3_access_key_id: Optional[str] = None
    s3_secret_access_key: Optional[str] = None
    s3_session_token: Optional[str] = None
    s3_endpoint_url: Optional[str] = None
    s3_addressing_style: str = "auto"
    http_timeout_s: float = 60.0
    http_retry: int = 0

    # Streaming settings
    part_size: int = DEFAULT_PART_SIZE
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.s3_region:
            raise ValueError("s3_region cannot be empty")

        if self.s3_addressing_style not in _ADDRESSING_STYLES:
            raise ValueError(
                f"Invalid s3_addressing_style: {self.s3_addressing_style}. "
                f"Supported values: {', '.join(_ADDRESSING_STYLES)}"
            )

        # Validate timeouts are positive
        if self.http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got {self.http_timeout_s}")

        # Validate retry count is non-negative
        if self.http_retry < 0:
            raise ValueError(f"http_retry must be non-negative, got {self.http_retry}")

        if not MIN_PART_SIZE <= self.part_size <= MAX_PART_SIZE:
            raise ValueError(
                f"part_size must be between {MIN_PART_SIZE} and {MAX_PART_SIZE} bytes, "
                f"got {self.part_size}"
            )

        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")

        # Static credentials must be complete
        if self.s3_access_key_id and not self.s3_secret_access_key:
            raise ValueError("s3_access_key_id specified but s3_secret_access_key is missing")
        if self.s3_secret_access_key and not self.s3_access_key_id:
            raise ValueError("s3_secret_access_key specified but s3_access_key_id is missing")
        if self.s3_session_token and not self.s3_access_key_id:
            raise ValueError("s3_session_token requires s3_access_key_id and s3_secret_access_key")

    @property
    def uses_static_credentials(self) -> bool:
        """True when explicit keys were configured instead of a profile."""
        return bool(self.s3_access_key_id)


# Backend config keys accepted by create_settings_from_config
CONFIG_ACCESS_KEY = "access_key"
CONFIG_SECRET_KEY = "secret_key"
CONFIG_SESSION_TOKEN = "session_token"
CONFIG_REGION = "region"
CONFIG_PROFILE = "profile"
CONFIG_ENDPOINT_URL = "endpoint_url"


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        S3:
        - REMOTE_FS_S3_REGION (default: us-east-1)
        - REMOTE_FS_S3_PROFILE (optional)
        - REMOTE_FS_S3_ACCESS_KEY_ID (optional)
        - REMOTE_FS_S3_SECRET_ACCESS_KEY (optional)
        - REMOTE_FS_S3_SESSION_TOKEN (optional)
        - REMOTE_FS_S3_ENDPOINT_URL (optional, for MinIO/LocalStack)
        - REMOTE_FS_S3_ADDRESSING_STYLE (default: auto)
        - REMOTE_FS_HTTP_TIMEOUT (default: 60.0)
        - REMOTE_FS_HTTP_RETRY (default: 0)

        Streaming:
        - REMOTE_FS_PART_SIZE (default: 5 MiB)
        - REMOTE_FS_CHUNK_SIZE (default: 5 MiB)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    # Helper to get float from env
    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default

    # Helper to get int from env
    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        return int(value) if value else default

    return Settings(
        s3_region=os.getenv("REMOTE_FS_S3_REGION") or "us-east-1",
        s3_profile=os.getenv("REMOTE_FS_S3_PROFILE"),
        s3_access_key_id=os.getenv("REMOTE_FS_S3_ACCESS_KEY_ID"),
        s3_secret_access_key=os.getenv("REMOTE_FS_S3_SECRET_ACCESS_KEY"),
        s3_session_token=os.getenv("REMOTE_FS_S3_SESSION_TOKEN"),
        s3_endpoint_url=os.getenv("REMOTE_FS_S3_ENDPOINT_URL"),
        s3_addressing_style=os.getenv("REMOTE_FS_S3_ADDRESSING_STYLE", "auto").lower(),
        http_timeout_s=get_float("REMOTE_FS_HTTP_TIMEOUT", 60.0),
        http_retry=get_int("REMOTE_FS_HTTP_RETRY", 0),
        part_size=get_int("REMOTE_FS_PART_SIZE", DEFAULT_PART_SIZE),
        chunk_size=get_int("REMOTE_FS_CHUNK_SIZE", DEFAULT_CHUNK_SIZE),
    )


def create_settings_from_config(config: Mapping[str, str], base: Optional[Settings] = None) -> Settings:
    """
    Build settings from a backend config mapping.

    Recognized keys: access_key, secret_key, session_token, region, profile,
    endpoint_url. Unknown keys are ignored; missing keys keep the value from
    ``base`` (or the defaults).

    Args:
        config: Backend configuration, e.g. {"region": "eu-west-1"}
        base: Settings to start from

    Returns:
        Settings object with validated configuration
    """
    base = base or Settings()
    return Settings(
        s3_region=config.get(CONFIG_REGION) or base.s3_region,
        s3_profile=config.get(CONFIG_PROFILE, base.s3_profile),
        s3_access_key_id=config.get(CONFIG_ACCESS_KEY, base.s3_access_key_id),
        s3_secret_access_key=config.get(CONFIG_SECRET_KEY, base.s3_secret_access_key),
        s3_session_token=config.get(CONFIG_SESSION_TOKEN, base.s3_session_token),
        s3_endpoint_url=config.get(CONFIG_ENDPOINT_URL, base.s3_endpoint_url),
        s3_addressing_style=base.s3_addressing_style,
        http_timeout_s=base.http_timeout_s,
        http_retry=base.http_retry,
        part_size=base.part_size,
        chunk_size=base.chunk_size,
    )
