"""Unit tests for settings models and loader."""

import json
import os
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from src.commons.settings.loader import (
    SettingsLoader,
    _deep_merge,
    get_settings,
    redact_settings,
    reset_settings,
)
from src.commons.settings.models import (
    AppSettings,
    BlobStorageSettings,
    DocumentDBSettings,
    IngestionSettings,
    ServerSettings,
    Settings,
    TelemetrySettings,
    VerificationSettings,
    VideoPlatformSettings,
)


class TestAppSettings:
    """Tests for AppSettings model."""

    def test_default_values(self):
        settings = AppSettings()
        assert settings.name == "festival-video-ingest"
        assert settings.version == "0.1.0"
        assert settings.environment == "dev"
        assert settings.debug is False
        assert settings.log_level == "INFO"

    def test_invalid_environment(self):
        with pytest.raises(ValueError):
            AppSettings(environment="invalid")  # type: ignore[arg-type]

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            AppSettings(log_level="TRACE")  # type: ignore[arg-type]


class TestServerSettings:
    """Tests for ServerSettings model."""

    def test_default_values(self):
        settings = ServerSettings()
        assert settings.host == "0.0.0.0"
        assert settings.port == 8000
        assert settings.api_prefix == "/api"
        assert settings.docs_enabled is True

    def test_port_validation(self):
        assert ServerSettings(port=3000).port == 3000

        with pytest.raises(ValueError):
            ServerSettings(port=0)

        with pytest.raises(ValueError):
            ServerSettings(port=70000)


class TestStorageSettings:
    """Tests for object storage and database settings."""

    def test_blob_defaults(self):
        settings = BlobStorageSettings()
        assert settings.provider == "minio"
        assert settings.endpoint == "localhost:9000"
        assert settings.bucket == "festival-videos"
        assert settings.folder == "uploads"
        assert settings.public_base_url is None

    def test_document_db_collections(self):
        settings = DocumentDBSettings()
        assert settings.collections.uploads == "video_uploads"
        assert settings.collections.notifications == "notifications"


class TestVerificationSettings:
    """Tests for verification policy settings."""

    def test_default_values(self):
        settings = VerificationSettings()
        assert settings.delay_seconds == 240
        assert settings.blocked_region_threshold == 50
        assert settings.retry_policy == "single_attempt"
        assert settings.recover_on_startup is True

    def test_invalid_policy(self):
        with pytest.raises(ValueError):
            VerificationSettings(retry_policy="forever")  # type: ignore[arg-type]

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError):
            VerificationSettings(delay_seconds=-1)


class TestPlatformAndIngestionSettings:
    """Tests for platform and ingestion settings."""

    def test_platform_defaults(self):
        settings = VideoPlatformSettings()
        assert settings.provider == "youtube"
        assert settings.privacy_status == "unlisted"
        assert settings.description == "Video uploaded for copyright verification"

    def test_public_privacy_not_allowed(self):
        with pytest.raises(ValueError):
            VideoPlatformSettings(privacy_status="public")  # type: ignore[arg-type]

    def test_ingestion_defaults(self):
        settings = IngestionSettings()
        assert settings.mode == "storage_first"
        assert settings.max_upload_size_mb == 500
        assert "video/mp4" in settings.allowed_mime_types
        assert settings.reject_duplicates is True


class TestRootSettings:
    """Tests for root Settings model."""

    def test_default_values(self):
        settings = Settings()
        assert isinstance(settings.app, AppSettings)
        assert isinstance(settings.server, ServerSettings)
        assert isinstance(settings.blob_storage, BlobStorageSettings)
        assert isinstance(settings.document_db, DocumentDBSettings)
        assert isinstance(settings.video_platform, VideoPlatformSettings)
        assert isinstance(settings.verification, VerificationSettings)
        assert isinstance(settings.ingestion, IngestionSettings)
        assert isinstance(settings.telemetry, TelemetrySettings)


class TestSettingsLoader:
    """Tests for SettingsLoader."""

    def teardown_method(self):
        for key in list(os.environ.keys()):
            if key.startswith("FESTIVAL_INGEST__"):
                del os.environ[key]

    def test_load_empty_config(self):
        with TemporaryDirectory() as tmpdir:
            loader = SettingsLoader(config_dir=Path(tmpdir), environment="dev")
            settings = loader.load()
            assert settings.app.name == "festival-video-ingest"

    def test_load_environment_override(self):
        with TemporaryDirectory() as tmpdir:
            config_dir = Path(tmpdir)

            base_config = {
                "app": {"name": "test-app"},
                "verification": {"delay_seconds": 240},
            }
            with (config_dir / "appsettings.json").open("w") as f:
                json.dump(base_config, f)

            prod_config = {
                "app": {"log_level": "WARNING"},
                "server": {"docs_enabled": False},
            }
            with (config_dir / "appsettings.prod.json").open("w") as f:
                json.dump(prod_config, f)

            settings = SettingsLoader(config_dir=config_dir, environment="prod").load()

            assert settings.app.name == "test-app"
            assert settings.verification.delay_seconds == 240
            assert settings.app.log_level == "WARNING"
            assert settings.server.docs_enabled is False

    def test_env_vars_override_files(self):
        with TemporaryDirectory() as tmpdir:
            config_dir = Path(tmpdir)
            with (config_dir / "appsettings.json").open("w") as f:
                json.dump({"verification": {"delay_seconds": 240}}, f)

            os.environ["FESTIVAL_INGEST__VERIFICATION__DELAY_SECONDS"] = "5"
            os.environ["FESTIVAL_INGEST__INGESTION__ALLOWED_MIME_TYPES"] = '["video/mp4"]'
            os.environ["FESTIVAL_INGEST__VIDEO_PLATFORM__API_KEY"] = "12345"

            settings = SettingsLoader(config_dir=config_dir, environment="dev").load()

            assert settings.verification.delay_seconds == 5
            assert settings.ingestion.allowed_mime_types == ["video/mp4"]
            assert settings.video_platform.api_key == "12345"

    def test_deep_merge(self):
        base = {"a": {"b": 1, "c": 2}, "d": 3}
        override = {"a": {"b": 10, "e": 4}, "f": 5}

        assert _deep_merge(base, override) == {
            "a": {"b": 10, "c": 2, "e": 4},
            "d": 3,
            "f": 5,
        }


class TestRedactSettings:
    """Tests for masking credentials before logging."""

    def test_secrets_are_masked(self):
        settings = Settings(
            video_platform=VideoPlatformSettings(
                client_secret="s3cret", refresh_token="tok", api_key="key"
            ),
            blob_storage=BlobStorageSettings(secret_key="minio-secret"),
        )

        redacted = redact_settings(settings)

        assert redacted["video_platform"]["client_secret"] == "***"
        assert redacted["video_platform"]["refresh_token"] == "***"
        assert redacted["video_platform"]["api_key"] == "***"
        assert redacted["blob_storage"]["secret_key"] == "***"
        assert redacted["blob_storage"]["endpoint"] == "localhost:9000"

    def test_empty_secrets_stay_empty(self):
        redacted = redact_settings(Settings())
        assert redacted["video_platform"]["api_key"] == ""


class TestGetSettings:
    """Tests for get_settings function."""

    def setup_method(self):
        reset_settings()

    def teardown_method(self):
        reset_settings()

    def test_get_settings_cached(self):
        with TemporaryDirectory() as tmpdir:
            settings1 = get_settings(config_dir=Path(tmpdir))
            settings2 = get_settings(config_dir=Path(tmpdir))
            assert settings1 is settings2

    def test_get_settings_reload(self):
        with TemporaryDirectory() as tmpdir:
            settings1 = get_settings(config_dir=Path(tmpdir))
            settings2 = get_settings(config_dir=Path(tmpdir), reload=True)
            assert settings1 is not settings2

    def test_reset_settings(self):
        with TemporaryDirectory() as tmpdir:
            settings1 = get_settings(config_dir=Path(tmpdir))
            reset_settings()
            settings2 = get_settings(config_dir=Path(tmpdir))
            assert settings1 is not settings2
