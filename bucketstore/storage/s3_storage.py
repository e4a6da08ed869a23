"""
Amazon S3 storage implementation.

Works with AWS S3 and with any provider that implements the S3 API through
a custom ``endpoint_url``.
"""

from pathlib import Path
from typing import List, Optional, Union

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from .cloud_storage import (
    CloudStorage,
    NetworkError,
    ObjectInfo,
    ObjectNotFoundError,
    QuotaExceededError,
    S3Config,
    StorageError,
    StoragePermissionError,
)
from .registry import BackendRegistry
from .url_utils import guess_content_type, hostname, join_url

logger = structlog.get_logger(__name__)

NOT_FOUND_CODES = {"NoSuchKey", "NotFound", "404"}


class S3Storage(CloudStorage):
    """
    S3 storage backend built on boto3.

    Objects are addressed path-style, so resolved bucket URIs take the form
    ``http://<host>/<bucket>/<key>``.
    """

    SCHEME = "s3"

    def __init__(self, config: S3Config, registry: Optional[BackendRegistry] = None):
        """Initialize S3 storage with configuration."""
        super().__init__(config, registry)
        self.config: S3Config = config

        try:
            self._session = boto3.Session(
                aws_access_key_id=config.access_key_id,
                aws_secret_access_key=config.secret_access_key,
                region_name=config.region,
            )

            client_kwargs = {
                "config": Config(s3={"addressing_style": "path"}),
                "region_name": config.region,
                "use_ssl": config.use_ssl,
                "verify": config.verify_ssl,
            }
            if config.endpoint_url:
                client_kwargs["endpoint_url"] = config.endpoint_url

            self._client = self._session.client("s3", **client_kwargs)
        except BotoCoreError as e:
            raise StorageError(f"Failed to create S3 client: {e}", details={"error": str(e)})

        self._register()
        logger.info(f"S3 storage ready: {config.bucket_name}")

    def hostname(self) -> str:
        """Host from the HTTP prefix, else the endpoint, else the regional AWS host."""
        if self.config.http_prefix:
            return hostname(self.config.http_prefix)
        if self.config.endpoint_url:
            return hostname(self.config.endpoint_url)
        if self.config.region:
            return f"s3.{self.config.region}.amazonaws.com"
        return "s3.amazonaws.com"

    def list(self, prefix: str = "") -> List[ObjectInfo]:
        """List objects in the bucket under a prefix."""
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            pages = paginator.paginate(
                Bucket=self.config.bucket_name,
                Prefix=prefix,
                PaginationConfig={"PageSize": self.config.list_page_size},
            )

            objects = []
            for page in pages:
                for obj in page.get("Contents", []):
                    objects.append(ObjectInfo.from_key(obj["Key"], obj.get("Size", 0), obj.get("LastModified")))
            return objects

        except ClientError as e:
            self._handle_client_error(e, f"list objects under {prefix!r}")
        except BotoCoreError as e:
            self._handle_botocore_error(e, f"list objects under {prefix!r}")

    def get(self, key: str) -> bytes:
        """Download an object's content."""
        try:
            response = self._client.get_object(Bucket=self.config.bucket_name, Key=key)
            body = response["Body"]
            try:
                return body.read()
            finally:
                body.close()

        except ClientError as e:
            self._handle_client_error(e, f"get object {key}")
        except BotoCoreError as e:
            self._handle_botocore_error(e, f"get object {key}")

    def put(self, key: str, data: bytes) -> None:
        """Upload bytes to S3."""
        try:
            self._client.put_object(
                Bucket=self.config.bucket_name,
                Key=key,
                Body=data,
                ContentType=guess_content_type(key),
            )
            logger.debug(f"Uploaded {len(data)} bytes to s3://{self.config.bucket_name}/{key}")

        except ClientError as e:
            self._handle_client_error(e, f"put object {key}")
        except BotoCoreError as e:
            self._handle_botocore_error(e, f"put object {key}")

    def put_file(self, key: str, local_path: Union[str, Path]) -> None:
        """Upload a local file to S3."""
        path = self._check_local_file(local_path)

        try:
            with open(path, "rb") as f:
                self._client.put_object(
                    Bucket=self.config.bucket_name,
                    Key=key,
                    Body=f,
                    ContentType=guess_content_type(path.name),
                )
            logger.debug(f"Uploaded {path} to s3://{self.config.bucket_name}/{key}")

        except ClientError as e:
            self._handle_client_error(e, f"put file {key}")
        except BotoCoreError as e:
            self._handle_botocore_error(e, f"put file {key}")

    def move(self, dest: str, source: str) -> None:
        """Copy an object to a new key and remove the source."""
        try:
            self._client.copy_object(
                CopySource={"Bucket": self.config.bucket_name, "Key": source},
                Bucket=self.config.bucket_name,
                Key=dest,
            )
        except ClientError as e:
            self._handle_client_error(e, f"copy object from {source} to {dest}")
        except BotoCoreError as e:
            self._handle_botocore_error(e, f"copy object from {source} to {dest}")

        self.remove(source)

    def remove(self, key: str) -> None:
        """Delete an object from S3."""
        try:
            self._client.delete_object(Bucket=self.config.bucket_name, Key=key)

        except ClientError as e:
            self._handle_client_error(e, f"delete object {key}")
        except BotoCoreError as e:
            self._handle_botocore_error(e, f"delete object {key}")

    def exist(self, key: str) -> bool:
        """Check if an object exists in S3."""
        try:
            self._client.head_object(Bucket=self.config.bucket_name, Key=key)
            return True

        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "UNKNOWN")
            if error_code in NOT_FOUND_CODES:
                return False
            self._handle_client_error(e, f"check existence of object {key}")
        except BotoCoreError as e:
            self._handle_botocore_error(e, f"check if object {key} exists")

    def web_url(self, key: str) -> str:
        """Generate the public URL of an object."""
        if self.config.http_prefix:
            return join_url(self.config.http_prefix, key)

        if self.config.endpoint_url:
            endpoint = self.config.endpoint_url.rstrip("/")
            return join_url(endpoint, f"{self.config.bucket_name}/{key.lstrip('/')}", secure=self.config.use_ssl)

        return f"https://{self.hostname()}/{self.config.bucket_name}/{key.lstrip('/')}"

    def _handle_client_error(self, error: ClientError, operation: str) -> None:
        """Convert S3 client errors to storage exceptions."""
        error_code = error.response.get("Error", {}).get("Code", "UNKNOWN")
        status_code = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        message = error.response.get("Error", {}).get("Message", str(error))

        if error_code in NOT_FOUND_CODES or error_code == "NoSuchBucket":
            raise ObjectNotFoundError(
                f"Not found during {operation}",
                error_code=error_code,
                status_code=status_code,
            )
        elif error_code in ["AccessDenied", "Forbidden", "403"]:
            raise StoragePermissionError(
                f"Access denied during {operation}",
                error_code=error_code,
                status_code=status_code,
            )
        elif error_code in ["QuotaExceeded", "RequestLimitExceeded", "SlowDown"]:
            raise QuotaExceededError(
                f"Quota exceeded during {operation}",
                error_code=error_code,
                status_code=status_code,
            )
        elif error_code in ["RequestTimeout", "ServiceUnavailable"]:
            raise NetworkError(
                f"Network error during {operation}: {message}",
                error_code=error_code,
                status_code=status_code,
            )
        else:
            raise StorageError(
                f"S3 error during {operation}: {message}",
                error_code=error_code,
                status_code=status_code,
            )

    def _handle_botocore_error(self, error: BotoCoreError, operation: str) -> None:
        """Convert transport and credential errors to storage exceptions."""
        if isinstance(error, NoCredentialsError):
            raise StoragePermissionError(
                f"AWS credentials not found during {operation}",
                error_code="NO_CREDENTIALS",
                details={"error": str(error)},
            )
        raise NetworkError(f"Failed to {operation}: {error}", details={"error": str(error)})


__all__ = ["S3Storage"]
