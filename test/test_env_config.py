import os
from unittest.mock import patch

import pytest

from bucketstore.storage.bucket_uri import DEFAULT_FALLBACK_URL
from bucketstore.utils import env_config
from bucketstore.utils.env_config import AppSettings, get_env_bool, get_settings, reload_settings

STORAGE_ENV_VARS = [
    "ENVIRONMENT",
    "STORAGE_BACKEND",
    "STORAGE_ACCESS_KEY_ID",
    "STORAGE_SECRET_ACCESS_KEY",
    "STORAGE_BUCKET_NAME",
    "STORAGE_ENDPOINT_URL",
    "STORAGE_REGION",
    "STORAGE_USE_SSL",
    "STORAGE_HTTP_PREFIX",
    "STORAGE_PRIVATE_BUCKET",
    "STORAGE_FALLBACK_URL",
    "STORAGE_REGISTRY_APPEND",
    "LOG_LEVEL",
    "LOG_JSON_FORMAT",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in STORAGE_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestAppSettings:
    """Test suite for AppSettings class."""

    def test_app_settings_default_values(self, clean_env: None) -> None:
        """Test that AppSettings has correct default values."""
        settings = AppSettings()

        assert settings.environment == "development"
        assert settings.storage_backend == "minio"
        assert settings.storage_access_key_id is None
        assert settings.storage_secret_access_key is None
        assert settings.storage_bucket_name is None
        assert settings.storage_endpoint_url is None
        assert settings.storage_region == "us-east-1"
        assert settings.storage_use_ssl is True
        assert settings.storage_http_prefix is None
        assert settings.storage_private_bucket is False
        assert settings.storage_fallback_url == DEFAULT_FALLBACK_URL
        assert settings.storage_registry_append is False
        assert settings.log_level == "INFO"
        assert settings.log_json_format is False

    def test_app_settings_from_env_vars(self, clean_env: None) -> None:
        """Test that AppSettings correctly reads from environment variables."""
        env_vars = {
            "STORAGE_BACKEND": " Qiniu ",
            "STORAGE_ACCESS_KEY_ID": "test-access-key",
            "STORAGE_SECRET_ACCESS_KEY": "test-secret-key",
            "STORAGE_BUCKET_NAME": "test-bucket",
            "STORAGE_ENDPOINT_URL": "https://s3.example.com",
            "STORAGE_REGION": "eu-west-1",
            "STORAGE_USE_SSL": "false",
            "STORAGE_HTTP_PREFIX": "https://cdn.example.com",
            "STORAGE_PRIVATE_BUCKET": "yes",
            "STORAGE_FALLBACK_URL": "https://cdn.example.com/missing.png",
            "STORAGE_REGISTRY_APPEND": "1",
            "LOG_LEVEL": "DEBUG",
            "LOG_JSON_FORMAT": "true",
        }

        with patch.dict(os.environ, env_vars):
            settings = AppSettings()

            assert settings.storage_backend == "qiniu"
            assert settings.storage_access_key_id == "test-access-key"
            assert settings.storage_secret_access_key == "test-secret-key"
            assert settings.storage_bucket_name == "test-bucket"
            assert settings.storage_endpoint_url == "https://s3.example.com"
            assert settings.storage_region == "eu-west-1"
            assert settings.storage_use_ssl is False
            assert settings.storage_http_prefix == "https://cdn.example.com"
            assert settings.storage_private_bucket is True
            assert settings.storage_fallback_url == "https://cdn.example.com/missing.png"
            assert settings.storage_registry_append is True
            assert settings.log_level == "DEBUG"
            assert settings.log_json_format is True

    def test_get_storage_config(self, clean_env: None) -> None:
        """Test get_storage_config when storage credentials are provided."""
        env_vars = {
            "STORAGE_BACKEND": "s3",
            "STORAGE_ACCESS_KEY_ID": "test-access-key",
            "STORAGE_SECRET_ACCESS_KEY": "test-secret-key",
            "STORAGE_REGION": "us-west-2",
            "STORAGE_BUCKET_NAME": "test-bucket",
            "STORAGE_ENDPOINT_URL": "https://s3.amazonaws.com",
            "STORAGE_USE_SSL": "true",
        }

        with patch.dict(os.environ, env_vars):
            config = AppSettings().get_storage_config()

            assert config == {
                "backend": "s3",
                "access_key_id": "test-access-key",
                "secret_access_key": "test-secret-key",
                "bucket_name": "test-bucket",
                "endpoint_url": "https://s3.amazonaws.com",
                "region": "us-west-2",
                "use_ssl": True,
                "http_prefix": None,
                "private": False,
            }

    def test_production_warnings(self, clean_env: None) -> None:
        """Test that missing production settings are reported."""
        with (
            patch.dict(os.environ, {"ENVIRONMENT": "production"}),
            patch.object(env_config.logger, "warning") as mock_warning,
        ):
            AppSettings()

            assert mock_warning.call_count == 2


class TestEnvHelpers:
    """Test suite for environment parsing helpers."""

    @pytest.mark.parametrize("value,expected", [("true", True), ("ON", True), ("0", False), ("no", False)])
    def test_get_env_bool(self, value: str, expected: bool) -> None:
        with patch.dict(os.environ, {"BUCKETSTORE_FLAG": value}):
            assert get_env_bool("BUCKETSTORE_FLAG") is expected

    def test_get_env_bool_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("BUCKETSTORE_FLAG", raising=False)

        assert get_env_bool("BUCKETSTORE_FLAG", True) is True


def test_get_settings_is_cached_until_reload(clean_env: None) -> None:
    with patch.object(env_config, "_settings", None):
        first = get_settings()
        assert get_settings() is first

        with patch.dict(os.environ, {"STORAGE_BUCKET_NAME": "reloaded"}):
            reloaded = reload_settings()

        assert reloaded is not first
        assert reloaded.storage_bucket_name == "reloaded"
        assert get_settings() is reloaded
