"""
Qiniu Kodo storage implementation.

Uploads and bucket management go through the ``qiniu`` SDK. Kodo has no
download API, so ``get`` fetches the object's public (or signed private)
URL over HTTP.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Union

import httpx
import structlog
from qiniu import Auth, BucketManager, Zone, put_data, put_file
from qiniu.config import set_default

from .cloud_storage import (
    CloudStorage,
    ConfigurationError,
    NetworkError,
    ObjectInfo,
    ObjectNotFoundError,
    QiniuConfig,
    QuotaExceededError,
    StorageError,
    StoragePermissionError,
)
from .registry import BackendRegistry
from .url_utils import guess_content_type, hostname, join_url

logger = structlog.get_logger(__name__)

# Kodo specific status codes
NO_SUCH_FILE = 612
NO_SUCH_BUCKET = 631
LIST_PAGE_SIZE = 1000

# Kodo region names and their zone ids
QINIU_REGIONS = {
    "huadong": "z0",
    "huabei": "z1",
    "huanan": "z2",
    "beimei": "na0",
    "xinjiapo": "as0",
}


def region_zone(region: str, use_https: bool = False) -> Zone:
    """Build the SDK zone serving a named Kodo region."""
    zone_id = QINIU_REGIONS[region]
    scheme = "https" if use_https else "http"
    io_host = "iovip.qbox.me" if zone_id == "z0" else f"iovip-{zone_id}.qbox.me"
    return Zone(
        up_host=f"{scheme}://up-{zone_id}.qiniup.com",
        up_host_backup=f"{scheme}://upload-{zone_id}.qiniup.com",
        io_host=f"{scheme}://{io_host}",
        rs_host=f"{scheme}://rs-{zone_id}.qiniuapi.com",
        rsf_host=f"{scheme}://rsf-{zone_id}.qiniuapi.com",
        api_host=f"{scheme}://api-{zone_id}.qiniuapi.com",
        scheme=scheme,
    )


def _put_time(value: Optional[int]) -> Optional[datetime]:
    """Convert a Kodo ``putTime`` (100ns ticks) to a datetime."""
    if not value:
        return None
    return datetime.fromtimestamp(value / 10_000_000, tz=timezone.utc)


class QiniuStorage(CloudStorage):
    """Qiniu Kodo storage backend."""

    SCHEME = "qiniu"

    def __init__(self, config: QiniuConfig, registry: Optional[BackendRegistry] = None):
        """Initialize Qiniu storage with configuration."""
        super().__init__(config, registry)
        self.config: QiniuConfig = config

        if not config.access_key_id or not config.secret_access_key:
            raise ConfigurationError("Qiniu storage requires an access key and a secret key", error_code="NO_CREDENTIALS")

        zone = None
        if config.region:
            if config.region not in QINIU_REGIONS:
                raise ConfigurationError(
                    f"Unknown Qiniu region {config.region!r}",
                    error_code="UNKNOWN_REGION",
                    details={"available": sorted(QINIU_REGIONS)},
                )
            zone = region_zone(config.region, config.use_https)
            # Form uploads only read the SDK-wide default zone
            set_default(default_zone=zone)

        self._auth = Auth(config.access_key_id, config.secret_access_key)
        self._bucket_manager = BucketManager(self._auth, zone=zone)

        self._register()
        logger.debug(f"Qiniu storage ready: {config.bucket_name} ({self.hostname()})")

    def hostname(self) -> str:
        """Host from the HTTP prefix, falling back to the bucket name."""
        if self.config.http_prefix:
            return hostname(self.config.http_prefix)
        return self.config.bucket_name

    def _upload_token(self, key: str) -> str:
        return self._auth.upload_token(self.config.bucket_name, key, self.config.token_expires)

    def list(self, prefix: str = "") -> List[ObjectInfo]:
        """List objects under a prefix, following list markers."""
        objects = []
        marker = None

        while True:
            ret, eof, info = self._bucket_manager.list(
                self.config.bucket_name, prefix=prefix or None, marker=marker, limit=LIST_PAGE_SIZE
            )
            if ret is None:
                self._handle_response_error(info, f"list objects under {prefix!r}")

            for item in ret.get("items", []):
                objects.append(ObjectInfo.from_key(item["key"], item.get("fsize", 0), _put_time(item.get("putTime"))))

            marker = ret.get("marker")
            if eof or not marker:
                return objects

    def get(self, key: str) -> bytes:
        """Download an object through its web URL."""
        url = self.web_url(key)
        if self.config.private:
            url = self._auth.private_download_url(url, expires=self.config.token_expires)

        try:
            response = httpx.get(url, timeout=self.config.download_timeout)
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to download object {key}: {e}", details={"url": url})

        if response.status_code == 404:
            raise ObjectNotFoundError(f"Object not found: {key}", error_code="NOT_FOUND", status_code=404)
        if response.status_code in (401, 403):
            raise StoragePermissionError(
                f"Access denied downloading {key}",
                error_code="ACCESS_DENIED",
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise StorageError(
                f"Failed to download object {key}: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response.content

    def put(self, key: str, data: bytes) -> None:
        """Upload bytes to the bucket."""
        ret, info = put_data(self._upload_token(key), key, data, mime_type=guess_content_type(key))
        if ret is None:
            self._handle_response_error(info, f"put object {key}")
        logger.debug(f"upload to bucket {self.config.bucket_name} -> {ret.get('key', key)}")

    def put_file(self, key: str, local_path: Union[str, Path]) -> None:
        """Upload a local file to the bucket."""
        path = self._check_local_file(local_path)
        ret, info = put_file(self._upload_token(key), key, str(path), mime_type=guess_content_type(path.name))
        if ret is None:
            self._handle_response_error(info, f"put file {key}")
        logger.debug(f"upload to bucket {self.config.bucket_name} -> {ret.get('key', key)}")

    def move(self, dest: str, source: str) -> None:
        """Move an object, overwriting the destination."""
        bucket = self.config.bucket_name
        _, info = self._bucket_manager.move(bucket, source, bucket, dest, force="true")
        if not info.ok():
            self._handle_response_error(info, f"move object from {source} to {dest}")

    def remove(self, key: str) -> None:
        """Delete an object."""
        _, info = self._bucket_manager.delete(self.config.bucket_name, key)
        if not info.ok():
            self._handle_response_error(info, f"delete object {key}")

    def exist(self, key: str) -> bool:
        """Check if a non-empty object exists."""
        ret, info = self._bucket_manager.stat(self.config.bucket_name, key)
        if ret is None:
            if info.status_code == NO_SUCH_FILE:
                return False
            self._handle_response_error(info, f"check existence of object {key}")
        return ret.get("fsize", 0) > 0

    def web_url(self, key: str) -> str:
        """Public URL of an object under the configured HTTP prefix."""
        if not self.config.http_prefix:
            raise ConfigurationError(
                f"No HTTP prefix configured for Qiniu bucket {self.config.bucket_name}",
                error_code="NO_HTTP_PREFIX",
            )
        url = join_url(self.config.http_prefix, key, secure=self.config.use_https)
        logger.debug(f"new url {url}")
        return url

    def _handle_response_error(self, info: Any, operation: str) -> None:
        """Convert a failed Kodo ResponseInfo to a storage exception."""
        status_code = getattr(info, "status_code", None)
        message = getattr(info, "error", None) or str(info)
        details = {"req_id": getattr(info, "req_id", None)}

        if status_code in (404, NO_SUCH_FILE, NO_SUCH_BUCKET):
            raise ObjectNotFoundError(
                f"Not found during {operation}",
                error_code=str(status_code),
                status_code=status_code,
                details=details,
            )
        elif status_code in (401, 403):
            raise StoragePermissionError(
                f"Access denied during {operation}",
                error_code=str(status_code),
                status_code=status_code,
                details=details,
            )
        elif status_code == 573:
            raise QuotaExceededError(
                f"Request rate exceeded during {operation}",
                error_code=str(status_code),
                status_code=status_code,
                details=details,
            )
        elif status_code is None or status_code < 0:
            raise NetworkError(f"Network error during {operation}: {message}", details=details)
        else:
            raise StorageError(
                f"Qiniu error during {operation}: {message}",
                error_code=str(status_code),
                status_code=status_code,
                details=details,
            )


__all__ = ["QINIU_REGIONS", "QiniuStorage", "region_zone"]
