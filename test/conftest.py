from collections.abc import Generator
from pathlib import Path
import tempfile
from typing import Any
from unittest.mock import MagicMock

import pytest
import structlog

from bucketstore.storage.bucket_uri import DEFAULT_FALLBACK_URL, set_fallback_url
from bucketstore.storage.registry import BackendRegistry, reset_registry
from bucketstore.utils.env_config import AppSettings


@pytest.fixture
def temp_dir() -> Generator[Path]:
    with tempfile.TemporaryDirectory() as tmpdirname:
        yield Path(tmpdirname)


@pytest.fixture
def registry() -> BackendRegistry:
    return BackendRegistry()


@pytest.fixture(autouse=True)
def default_registry() -> Generator[BackendRegistry]:
    yield reset_registry()
    reset_registry()


@pytest.fixture(autouse=True)
def reset_fallback_url() -> Generator[None]:
    yield
    set_fallback_url(DEFAULT_FALLBACK_URL)


@pytest.fixture
def mock_settings(mocker: Any) -> MagicMock:
    settings = MagicMock(spec=AppSettings)
    settings.log_level = "INFO"
    settings.log_json_format = False
    settings.storage_fallback_url = "http://local/default.png"
    settings.storage_registry_append = False
    settings.get_storage_config.return_value = {
        "backend": "minio",
        "access_key_id": "minioadmin",
        "secret_access_key": "minioadmin",
        "bucket_name": "photos",
        "endpoint_url": "localhost:9000",
        "region": "us-east-1",
        "use_ssl": False,
        "http_prefix": None,
        "private": False,
    }
    return settings


@pytest.fixture(autouse=True)
def mock_logger(mocker: Any) -> MagicMock:
    return mocker.patch.object(structlog, "get_logger", return_value=MagicMock())
