from typing import Optional, Union

import structlog

from bucketstore.factories.storage_factory import create_storage
from bucketstore.storage.bucket_uri import BucketURI, set_fallback_url
from bucketstore.storage.cloud_storage import CloudStorage, ConfigurationError
from bucketstore.storage.registry import BackendRegistry, reset_registry
from bucketstore.utils.env_config import AppSettings, get_settings
from bucketstore.utils.logging import configure_logging

logger = structlog.get_logger(__name__)


class StorageApp:
    """Wires settings, logging, the backend registry and the storage backend."""

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        registry: Optional[BackendRegistry] = None,
        setup_logging: bool = True,
    ) -> None:
        """Initialize the application."""
        if settings is None:
            try:
                settings = get_settings()
                logger.info("Configuration loaded successfully")
            except Exception as e:
                logger.warning(f"Config loading failed, using defaults: {e}")
                settings = AppSettings()
        self.settings: AppSettings = settings

        if setup_logging:
            configure_logging(level=self.settings.log_level, format_json=self.settings.log_json_format)

        set_fallback_url(self.settings.storage_fallback_url)

        # Serialized bucket URIs resolve against the process-wide registry
        if registry is None:
            registry = reset_registry(BackendRegistry(append_existing=self.settings.storage_registry_append))
        self.registry = registry
        self._storage: Optional[CloudStorage] = None
        self.is_initialized = False

    def initialize(self) -> None:
        """Create the configured storage backend."""
        if self.is_initialized:
            return

        self._storage = create_storage(self.settings, self.registry)
        if self._storage:
            logger.info(f"Storage backend initialized: {self._storage!r}")
        else:
            logger.warning("Storage credentials not configured, storage features will be disabled")
        self.is_initialized = True

    @property
    def storage(self) -> CloudStorage:
        if self._storage is None:
            raise ConfigurationError("Storage backend is not available, call initialize() with credentials configured")
        return self._storage

    def resolve(self, uri: Union[str, BucketURI]) -> str:
        """Resolve a bucket URI against this application's registry."""
        return BucketURI(uri).resolve(self.registry)
