"""
Environment-based configuration for bucketstore.

Settings are read from environment variables, optionally loaded from a
``.env`` file in the working directory.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from bucketstore.storage.bucket_uri import DEFAULT_FALLBACK_URL

logger = logging.getLogger(__name__)

# Load environment variables from .env file
env_file = Path.cwd() / ".env"
if env_file.exists():
    load_dotenv(env_file, override=True)
    logger.info(f"Loaded environment variables from: {env_file}")


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean value from environment variable."""
    value = os.getenv(key, "").lower()
    return value in ("true", "1", "yes", "on") if value else default


@dataclass
class AppSettings:
    """Application settings from environment variables."""

    # Environment
    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))

    # Storage Configuration
    storage_backend: str = field(default_factory=lambda: os.getenv("STORAGE_BACKEND", "minio").strip().lower())
    storage_access_key_id: Optional[str] = field(default_factory=lambda: os.getenv("STORAGE_ACCESS_KEY_ID"))
    storage_secret_access_key: Optional[str] = field(default_factory=lambda: os.getenv("STORAGE_SECRET_ACCESS_KEY"))
    storage_bucket_name: Optional[str] = field(default_factory=lambda: os.getenv("STORAGE_BUCKET_NAME"))
    storage_endpoint_url: Optional[str] = field(default_factory=lambda: os.getenv("STORAGE_ENDPOINT_URL"))
    storage_region: str = field(default_factory=lambda: os.getenv("STORAGE_REGION", "us-east-1"))
    storage_use_ssl: bool = field(default_factory=lambda: get_env_bool("STORAGE_USE_SSL", True))
    storage_http_prefix: Optional[str] = field(default_factory=lambda: os.getenv("STORAGE_HTTP_PREFIX"))
    storage_private_bucket: bool = field(default_factory=lambda: get_env_bool("STORAGE_PRIVATE_BUCKET", False))

    # Bucket URI resolution
    storage_fallback_url: str = field(default_factory=lambda: os.getenv("STORAGE_FALLBACK_URL", DEFAULT_FALLBACK_URL))
    storage_registry_append: bool = field(default_factory=lambda: get_env_bool("STORAGE_REGISTRY_APPEND", False))

    # Logging Configuration
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_json_format: bool = field(default_factory=lambda: get_env_bool("LOG_JSON_FORMAT", False))

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.environment == "production":
            if not self.storage_access_key_id or not self.storage_secret_access_key:
                logger.warning("Storage credentials not provided for production environment")
            if self.storage_fallback_url == DEFAULT_FALLBACK_URL:
                logger.warning("Using the default fallback URL in production environment")

    def get_storage_config(self) -> dict:
        """Get storage configuration as a dictionary."""
        return {
            "backend": self.storage_backend,
            "access_key_id": self.storage_access_key_id,
            "secret_access_key": self.storage_secret_access_key,
            "bucket_name": self.storage_bucket_name,
            "endpoint_url": self.storage_endpoint_url,
            "region": self.storage_region,
            "use_ssl": self.storage_use_ssl,
            "http_prefix": self.storage_http_prefix,
            "private": self.storage_private_bucket,
        }


# Global settings instance
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get the global application settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
        logger.info(f"Loaded settings for environment: {_settings.environment}")
    return _settings


def reload_settings() -> AppSettings:
    """Reload the global application settings."""
    global _settings
    if env_file.exists():
        load_dotenv(env_file, override=True)
    _settings = AppSettings()
    logger.info(f"Reloaded settings for environment: {_settings.environment}")
    return _settings
