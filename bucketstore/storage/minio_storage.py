"""
MinIO storage implementation built on the official ``minio`` SDK.
"""

import io
from pathlib import Path
from typing import List, Optional, Union

import structlog
from minio import Minio
from minio.commonconfig import CopySource
from minio.error import MinioException, S3Error

from .cloud_storage import (
    CloudStorage,
    ConfigurationError,
    MinioConfig,
    NetworkError,
    ObjectInfo,
    ObjectNotFoundError,
    StorageError,
    StoragePermissionError,
)
from .registry import BackendRegistry
from .url_utils import guess_content_type, hostname, join_url, normalize_key

logger = structlog.get_logger(__name__)

NOT_FOUND_CODES = {"NoSuchKey", "NoSuchObject", "ResourceNotFound"}


class MinioStorage(CloudStorage):
    """MinIO storage backend. Leading slashes on keys are ignored."""

    SCHEME = "minio"

    def __init__(self, config: MinioConfig, registry: Optional[BackendRegistry] = None):
        """Initialize MinIO storage with configuration."""
        super().__init__(config, registry)
        self.config: MinioConfig = config

        try:
            self._client = Minio(
                endpoint=hostname(config.endpoint),
                access_key=config.access_key_id,
                secret_key=config.secret_access_key,
                secure=config.use_ssl,
                region=config.region,
            )
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid MinIO endpoint {config.endpoint!r}: {e}",
                error_code="INVALID_ENDPOINT",
                details={"endpoint": config.endpoint},
            )

        self._register()
        logger.debug(f"MinIO storage ready: {config.bucket_name} at {config.endpoint} ({self.hostname()})")

    def hostname(self) -> str:
        """Host from the HTTP prefix, else the API endpoint."""
        if self.config.http_prefix:
            return hostname(self.config.http_prefix)
        return hostname(self.config.endpoint)

    def list(self, prefix: str = "") -> List[ObjectInfo]:
        """Recursively list objects under a prefix."""
        try:
            objects = []
            for obj in self._client.list_objects(bucket_name=self.config.bucket_name, prefix=normalize_key(prefix), recursive=True):
                info = ObjectInfo.from_key(obj.object_name, obj.size or 0, obj.last_modified)
                info.is_dir = info.is_dir or bool(obj.is_dir)
                objects.append(info)
            return objects

        except S3Error as e:
            self._handle_s3_error(e, f"list objects under {prefix!r}")
        except MinioException as e:
            raise NetworkError(f"Failed to list objects under {prefix!r}: {e}")

    def get(self, key: str) -> bytes:
        """Download an object's content."""
        key = normalize_key(key)
        try:
            response = self._client.get_object(bucket_name=self.config.bucket_name, object_name=key)
            try:
                return response.read()
            finally:
                response.close()
                response.release_conn()

        except S3Error as e:
            self._handle_s3_error(e, f"get object {key}")
        except MinioException as e:
            raise NetworkError(f"Failed to get object {key}: {e}")

    def put(self, key: str, data: bytes) -> None:
        """Upload bytes to MinIO."""
        key = normalize_key(key)
        try:
            self._client.put_object(
                bucket_name=self.config.bucket_name,
                object_name=key,
                data=io.BytesIO(data),
                length=len(data),
                content_type=guess_content_type(key),
            )
            logger.debug(f"Uploaded {key} of size {len(data)}")

        except S3Error as e:
            self._handle_s3_error(e, f"put object {key}")
        except MinioException as e:
            raise NetworkError(f"Failed to put object {key}: {e}")

    def put_file(self, key: str, local_path: Union[str, Path]) -> None:
        """Upload a local file to MinIO."""
        path = self._check_local_file(local_path)
        key = normalize_key(key)
        try:
            self._client.fput_object(
                bucket_name=self.config.bucket_name,
                object_name=key,
                file_path=str(path),
                content_type=guess_content_type(path.name),
            )
            logger.debug(f"Uploaded {path} to {key}")

        except S3Error as e:
            self._handle_s3_error(e, f"put file {key}")
        except MinioException as e:
            raise NetworkError(f"Failed to put file {key}: {e}")

    def move(self, dest: str, source: str) -> None:
        """Copy an object to a new key and remove the source."""
        dest = normalize_key(dest)
        source = normalize_key(source)
        try:
            self._client.copy_object(
                bucket_name=self.config.bucket_name,
                object_name=dest,
                source=CopySource(bucket_name=self.config.bucket_name, object_name=source),
            )
        except S3Error as e:
            self._handle_s3_error(e, f"copy object from {source} to {dest}")
        except MinioException as e:
            raise NetworkError(f"Failed to copy object from {source} to {dest}: {e}")

        self.remove(source)

    def remove(self, key: str) -> None:
        """Delete an object from MinIO."""
        key = normalize_key(key)
        try:
            self._client.remove_object(bucket_name=self.config.bucket_name, object_name=key)

        except S3Error as e:
            self._handle_s3_error(e, f"delete object {key}")
        except MinioException as e:
            raise NetworkError(f"Failed to delete object {key}: {e}")

    def exist(self, key: str) -> bool:
        """Check if an object exists in MinIO."""
        key = normalize_key(key)
        try:
            self._client.stat_object(bucket_name=self.config.bucket_name, object_name=key)
            return True

        except S3Error as e:
            if e.code in NOT_FOUND_CODES:
                return False
            self._handle_s3_error(e, f"check existence of object {key}")
        except MinioException as e:
            raise NetworkError(f"Failed to check if object {key} exists: {e}")

    def web_url(self, key: str) -> str:
        """Public URL of an object, from the HTTP prefix or the endpoint."""
        if self.config.http_prefix:
            return join_url(self.config.http_prefix, key)
        return join_url(self.config.endpoint, f"{self.config.bucket_name}/{normalize_key(key)}", secure=self.config.use_ssl)

    def _handle_s3_error(self, error: S3Error, operation: str) -> None:
        """Convert MinIO S3 errors to storage exceptions."""
        response = getattr(error, "response", None)
        status_code = getattr(response, "status", None)

        if error.code in NOT_FOUND_CODES or error.code == "NoSuchBucket":
            raise ObjectNotFoundError(
                f"Not found during {operation}",
                error_code=error.code,
                status_code=status_code,
            )
        elif error.code in ["AccessDenied", "InvalidAccessKeyId", "SignatureDoesNotMatch"]:
            raise StoragePermissionError(
                f"Access denied during {operation}",
                error_code=error.code,
                status_code=status_code,
            )
        else:
            raise StorageError(
                f"MinIO error during {operation}: {error.message}",
                error_code=error.code,
                status_code=status_code,
            )


__all__ = ["MinioStorage"]
