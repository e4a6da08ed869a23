"""
Abstract object storage interface.

This module defines the capability set every storage backend implements,
the configuration models for the supported providers and the exception
hierarchy adapters translate vendor errors into.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, List, Optional, Union

from pydantic import BaseModel, Field

from .bucket_uri import BucketURI
from .registry import BackendRegistry, get_registry


class StorageBackend(str, Enum):
    """Supported storage providers, valued by their URI scheme."""

    MINIO = "minio"
    S3 = "s3"
    QINIU = "qiniu"


@dataclass
class ObjectInfo:
    """Information about a stored object."""

    name: str
    size: int
    mod_time: Optional[datetime] = None
    is_dir: bool = False

    @classmethod
    def from_key(cls, key: str, size: int, mod_time: Optional[datetime] = None) -> "ObjectInfo":
        """Build an ObjectInfo, flagging keys ending in ``/`` as directories."""
        return cls(name=key, size=size, mod_time=mod_time, is_dir=key.endswith("/"))


class StorageConfig(BaseModel):
    """Configuration shared by every storage backend."""

    bucket_name: str
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None

    # Public URL prefix objects are served from, e.g. a CDN domain
    http_prefix: Optional[str] = None


class MinioConfig(StorageConfig):
    """Configuration for a MinIO server."""

    endpoint: str = Field(default="localhost:9000", description="host:port of the MinIO API")
    use_ssl: bool = False
    region: Optional[str] = None


class S3Config(StorageConfig):
    """Configuration for Amazon S3 or an S3-compatible provider."""

    endpoint_url: Optional[str] = None  # Required for non-AWS S3 services
    region: Optional[str] = "us-east-1"
    use_ssl: bool = True
    verify_ssl: bool = True
    list_page_size: int = Field(default=1000, ge=1, le=1000)


class QiniuConfig(StorageConfig):
    """Configuration for Qiniu Kodo object storage."""

    use_https: bool = False
    private: bool = False
    region: Optional[str] = Field(default=None, description="Kodo region name, e.g. huadong; auto-discovered when unset")
    token_expires: int = Field(default=3600, ge=60)
    download_timeout: float = Field(default=30.0, gt=0)


class StorageError(Exception):
    """Base exception for storage operations."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}


class ObjectNotFoundError(StorageError):
    """Object (or local file) not found."""

    pass


class StoragePermissionError(StorageError):
    """Permission denied for storage operation."""

    pass


class QuotaExceededError(StorageError):
    """Storage quota or request rate exceeded."""

    pass


class NetworkError(StorageError):
    """Network-related storage error."""

    pass


class ConfigurationError(StorageError):
    """Invalid or incomplete backend configuration."""

    pass


class CloudStorage(ABC):
    """
    Abstract base class for object storage backends.

    Subclasses set ``SCHEME`` and call ``_register()`` once construction
    has succeeded, which publishes the bucket host to the registry so that
    bucket URIs for this backend can be resolved.
    """

    SCHEME: ClassVar[str]

    def __init__(self, config: StorageConfig, registry: Optional[BackendRegistry] = None):
        """Initialize the backend with configuration."""
        self.config = config
        self.registry = registry if registry is not None else get_registry()

    def _register(self) -> None:
        """Register this backend's bucket host."""
        self.registry.register(self.SCHEME, self.bucket_name(), self.hostname())

    @abstractmethod
    def list(self, prefix: str = "") -> List[ObjectInfo]:
        """
        List objects under a key prefix.

        Args:
            prefix: Key prefix to filter objects

        Returns:
            List of ObjectInfo objects
        """
        pass

    @abstractmethod
    def get(self, key: str) -> bytes:
        """
        Download object content.

        Args:
            key: Storage key of the object

        Returns:
            Object content as bytes
        """
        pass

    @abstractmethod
    def put(self, key: str, data: bytes) -> None:
        """
        Upload bytes under a key.

        Args:
            key: Storage key for the object
            data: Content to store
        """
        pass

    @abstractmethod
    def put_file(self, key: str, local_path: Union[str, Path]) -> None:
        """
        Upload a local file under a key.

        Args:
            key: Storage key for the object
            local_path: Path of the file to upload
        """
        pass

    @abstractmethod
    def move(self, dest: str, source: str) -> None:
        """
        Move an object within the bucket.

        Args:
            dest: Destination key
            source: Source key
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete an object."""
        pass

    @abstractmethod
    def exist(self, key: str) -> bool:
        """Check if an object exists."""
        pass

    @abstractmethod
    def web_url(self, key: str) -> str:
        """Build the public URL of an object."""
        pass

    @abstractmethod
    def hostname(self) -> str:
        """Host that serves this bucket to external clients."""
        pass

    def bucket_name(self) -> str:
        return self.config.bucket_name

    def bucket_uri(self, key: str) -> BucketURI:
        """Build an opaque reference to an object in this bucket."""
        return BucketURI.build(self.SCHEME, self.bucket_name(), key)

    def _check_local_file(self, local_path: Union[str, Path]) -> Path:
        path = Path(local_path)
        if not path.is_file():
            raise ObjectNotFoundError(f"File not found: {path}", details={"path": str(path)})
        return path

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.SCHEME}://{self.bucket_name()}>"


__all__ = [
    "CloudStorage",
    "ConfigurationError",
    "MinioConfig",
    "NetworkError",
    "ObjectInfo",
    "ObjectNotFoundError",
    "QiniuConfig",
    "QuotaExceededError",
    "S3Config",
    "StorageBackend",
    "StorageConfig",
    "StorageError",
    "StoragePermissionError",
]
