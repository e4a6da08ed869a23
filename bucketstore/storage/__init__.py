"""
Unified object storage with lazily resolved bucket URIs.

Backends for MinIO, Amazon S3 (and S3-compatible services) and Qiniu Kodo
share one capability interface. Each backend registers its bucket host when
it is constructed, so ``BucketURI`` references can later be resolved to
public URLs without a handle to the backend.
"""

from typing import Dict, Optional, Type

from .bucket_uri import (
    DEFAULT_FALLBACK_URL,
    KNOWN_SCHEMES,
    BucketURI,
    get_fallback_url,
    json_default,
    set_fallback_url,
)
from .cloud_storage import (
    CloudStorage,
    ConfigurationError,
    MinioConfig,
    NetworkError,
    ObjectInfo,
    ObjectNotFoundError,
    QiniuConfig,
    QuotaExceededError,
    S3Config,
    StorageBackend,
    StorageConfig,
    StorageError,
    StoragePermissionError,
)
from .minio_storage import MinioStorage
from .netutils import PRIVATE_IP_BLOCKS, is_private_host, is_private_ip
from .qiniu_storage import QiniuStorage
from .registry import BackendRegistry, RegistryEntry, get_registry, reset_registry
from .s3_storage import S3Storage

STORAGE_BACKENDS: Dict[Type[StorageConfig], Type[CloudStorage]] = {
    MinioConfig: MinioStorage,
    S3Config: S3Storage,
    QiniuConfig: QiniuStorage,
}


def create_storage(config: StorageConfig, registry: Optional[BackendRegistry] = None) -> CloudStorage:
    """Create the storage backend matching a configuration model."""
    for config_type, storage_type in STORAGE_BACKENDS.items():
        if isinstance(config, config_type):
            return storage_type(config, registry)
    raise ConfigurationError(f"No storage backend for {type(config).__name__}", error_code="UNKNOWN_BACKEND")


__all__ = [
    # Abstract interfaces and base classes
    "CloudStorage",
    "StorageConfig",
    # Concrete implementations
    "MinioStorage",
    "S3Storage",
    "QiniuStorage",
    "MinioConfig",
    "S3Config",
    "QiniuConfig",
    "STORAGE_BACKENDS",
    # Factory functions
    "create_storage",
    # Registry and bucket URIs
    "BackendRegistry",
    "RegistryEntry",
    "get_registry",
    "reset_registry",
    "BucketURI",
    "DEFAULT_FALLBACK_URL",
    "KNOWN_SCHEMES",
    "get_fallback_url",
    "set_fallback_url",
    "json_default",
    # Network classification
    "PRIVATE_IP_BLOCKS",
    "is_private_host",
    "is_private_ip",
    # Data models and enums
    "ObjectInfo",
    "StorageBackend",
    # Exceptions
    "StorageError",
    "ObjectNotFoundError",
    "StoragePermissionError",
    "QuotaExceededError",
    "NetworkError",
    "ConfigurationError",
]
