"""
Factory for creating storage instances.
"""

from typing import Optional

from bucketstore.storage import create_storage as create_storage_from_config
from bucketstore.storage.cloud_storage import (
    CloudStorage,
    ConfigurationError,
    MinioConfig,
    QiniuConfig,
    S3Config,
    StorageBackend,
    StorageConfig,
)
from bucketstore.storage.qiniu_storage import QINIU_REGIONS
from bucketstore.storage.registry import BackendRegistry
from bucketstore.utils.env_config import AppSettings


def _is_set(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def build_storage_config(settings: AppSettings) -> StorageConfig:
    """Translate application settings into a backend configuration model."""
    config_dict = settings.get_storage_config()

    try:
        backend = StorageBackend(config_dict["backend"])
    except ValueError:
        raise ConfigurationError(
            f"Unknown storage backend {config_dict['backend']!r}",
            error_code="UNKNOWN_BACKEND",
            details={"available": [b.value for b in StorageBackend]},
        )

    common = {
        "bucket_name": config_dict["bucket_name"],
        "access_key_id": config_dict["access_key_id"],
        "secret_access_key": config_dict["secret_access_key"],
        "http_prefix": config_dict["http_prefix"],
    }

    if backend == StorageBackend.MINIO:
        if config_dict["endpoint_url"]:
            common["endpoint"] = config_dict["endpoint_url"]
        return MinioConfig(**common, use_ssl=config_dict["use_ssl"], region=config_dict["region"])

    if backend == StorageBackend.S3:
        return S3Config(
            **common,
            endpoint_url=config_dict["endpoint_url"],
            region=config_dict["region"],
            use_ssl=config_dict["use_ssl"],
        )

    # STORAGE_REGION is shared with S3, so only Kodo region names select a zone
    region = config_dict["region"] if config_dict["region"] in QINIU_REGIONS else None
    return QiniuConfig(**common, use_https=config_dict["use_ssl"], private=config_dict["private"], region=region)


def create_storage(settings: AppSettings, registry: Optional[BackendRegistry] = None) -> CloudStorage | None:
    """Create storage based on configuration, or None without credentials."""
    config_dict = settings.get_storage_config()

    if not (
        _is_set(config_dict["access_key_id"])
        and _is_set(config_dict["secret_access_key"])
        and _is_set(config_dict["bucket_name"])
    ):
        return None

    return create_storage_from_config(build_storage_config(settings), registry)
