"""
bucketstore: one interface over MinIO, S3 and Qiniu object storage.
"""

from bucketstore.storage import (
    BackendRegistry,
    BucketURI,
    CloudStorage,
    MinioStorage,
    QiniuStorage,
    S3Storage,
    create_storage,
    get_fallback_url,
    get_registry,
    set_fallback_url,
)

__version__ = "0.1.0"

__all__ = [
    "BackendRegistry",
    "BucketURI",
    "CloudStorage",
    "MinioStorage",
    "QiniuStorage",
    "S3Storage",
    "create_storage",
    "get_fallback_url",
    "get_registry",
    "set_fallback_url",
]
