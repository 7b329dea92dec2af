"""Settings loader with layered configuration support."""

import json
import os
from pathlib import Path
from typing import Any

from src.commons.settings.models import Settings

# Credentials are passed through verbatim, even when they look numeric.
_SECRET_SUFFIXES = ("_key", "_secret", "_token", "password", "client_id")
_MASK = "***"


class SettingsLoader:
    """Loads and merges configuration from multiple sources.

    Configuration precedence (highest to lowest):
    1. Environment variables (FESTIVAL_INGEST__SECTION__KEY)
    2. Environment-specific config (appsettings.{env}.json)
    3. Base config (appsettings.json)
    """

    ENV_PREFIX = "FESTIVAL_INGEST__"

    def __init__(
        self,
        config_dir: Path | None = None,
        environment: str | None = None,
    ) -> None:
        """Initialize the settings loader.

        Args:
            config_dir: Directory containing configuration files.
                       Defaults to 'config' in current working directory.
            environment: Environment name (dev, staging, prod).
                        Defaults to FESTIVAL_INGEST__APP__ENVIRONMENT or 'dev'.
        """
        self.config_dir = config_dir or Path("config")
        self.environment = environment or os.getenv(
            f"{self.ENV_PREFIX}APP__ENVIRONMENT", "dev"
        )

    def load(self) -> Settings:
        """Load settings with proper precedence.

        Returns:
            Fully resolved Settings instance.
        """
        config = self._load_json("appsettings.json")
        config = _deep_merge(
            config, self._load_json(f"appsettings.{self.environment}.json")
        )
        config = _deep_merge(config, self._load_env_vars())
        return Settings(**config)

    def _load_env_vars(self) -> dict[str, Any]:
        """Collect FESTIVAL_INGEST__ variables into a nested dict.

        FESTIVAL_INGEST__VIDEO_PLATFORM__API_KEY becomes
        {"video_platform": {"api_key": "value"}}.
        """
        result: dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(self.ENV_PREFIX):
                continue

            key_path = key[len(self.ENV_PREFIX) :].lower().split("__")
            current = result
            for part in key_path[:-1]:
                current = current.setdefault(part, {})

            final_key = key_path[-1]
            if _is_secret(final_key):
                current[final_key] = value
            else:
                current[final_key] = _coerce_value(value)

        return result

    def _load_json(self, filename: str) -> dict[str, Any]:
        """Load a JSON config file, or an empty dict if it is missing."""
        path = self.config_dir / filename
        if path.exists():
            with path.open(encoding="utf-8") as f:
                return dict(json.load(f))
        return {}


def _is_secret(key: str) -> bool:
    return key.endswith(_SECRET_SUFFIXES)


def _coerce_value(value: str) -> Any:
    """Coerce a string environment variable to bool, int, float or JSON."""
    if value.lower() in ("true", "false"):
        return value.lower() == "true"

    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            pass

    # Lists/dicts such as CORS_ORIGINS or ALLOWED_MIME_TYPES
    if value.startswith(("[", "{")):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            pass

    return value


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def redact_settings(settings: Settings) -> dict[str, Any]:
    """Dump settings with credentials masked, for startup logging."""

    def _mask(node: Any) -> Any:
        if isinstance(node, dict):
            return {
                k: (_MASK if _is_secret(k) and v else _mask(v))
                for k, v in node.items()
            }
        return node

    return dict(_mask(settings.model_dump(mode="json")))


# Global settings instance
_settings: Settings | None = None


def get_settings(
    config_dir: Path | None = None,
    environment: str | None = None,
    *,
    reload: bool = False,
) -> Settings:
    """Get or create the global settings instance.

    Args:
        config_dir: Optional config directory override.
        environment: Optional environment override.
        reload: Force reload settings from files.

    Returns:
        Settings instance.
    """
    global _settings  # noqa: PLW0603
    if _settings is None or reload:
        loader = SettingsLoader(config_dir=config_dir, environment=environment)
        _settings = loader.load()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance. Useful for testing."""
    global _settings  # noqa: PLW0603
    _settings = None
