"""Settings management module."""

from src.commons.settings.loader import (
    SettingsLoader,
    get_settings,
    redact_settings,
    reset_settings,
)
from src.commons.settings.models import (
    AppSettings,
    BlobStorageSettings,
    DocumentCollectionSettings,
    DocumentDBSettings,
    IngestionSettings,
    ServerSettings,
    Settings,
    TelemetrySettings,
    VerificationSettings,
    VideoPlatformSettings,
)

__all__ = [
    # Loader
    "SettingsLoader",
    "get_settings",
    "redact_settings",
    "reset_settings",
    # Main settings
    "Settings",
    "AppSettings",
    "ServerSettings",
    # Storage
    "BlobStorageSettings",
    "DocumentDBSettings",
    "DocumentCollectionSettings",
    # Pipeline
    "VideoPlatformSettings",
    "VerificationSettings",
    "IngestionSettings",
    # Telemetry
    "TelemetrySettings",
]
