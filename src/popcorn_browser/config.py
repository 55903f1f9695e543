"""Configuration persistence: load and save user settings."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from popcorn_browser.models import (
    CONFIG_APP_NAME,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    MAX_REQUEST_TIMEOUT_SECONDS,
    MIN_QUERY_LENGTH,
    UserConfig,
)
from popcorn_browser.storage import atomic_write_text

logger = logging.getLogger(__name__)

# ============================================================================
# Configuration Persistence
# ============================================================================
#
# Validation contract: _dict_to_config() guarantees valid output for any input:
#
#   Field                    Rule                      Handler
#   ───────────────────────  ────────────────────────  ─────────────────────────
#   request_timeout_seconds  1 ≤ x ≤ 60                _coerce_timeout
#   min_query_length         x ≥ 1                     _coerce_min_query_length
#   scalar fields            type-checked              _safe_get
#
CONFIG_FILENAME = "config.json"
API_KEY_ENV_VAR = "OMDB_API_KEY"


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Uses platformdirs for cross-platform config directory:
    - Linux: ~/.config/popcorn-browser/config.json
    - macOS: ~/Library/Application Support/popcorn-browser/config.json
    - Windows: %APPDATA%/popcorn-browser/config.json
    """
    config_dir = Path(user_config_dir(CONFIG_APP_NAME))
    return config_dir / CONFIG_FILENAME


def _config_to_dict(config: UserConfig) -> dict[str, Any]:
    """Serialize UserConfig to a JSON-compatible dictionary."""
    return {
        "version": config.version,
        "api_key": config.api_key,
        "request_timeout_seconds": _coerce_timeout(config.request_timeout_seconds),
        "min_query_length": _coerce_min_query_length(config.min_query_length),
    }


def _safe_get(data: dict, key: str, default: Any, expected_type: type) -> Any:
    """Safely get a value from dict with type validation.

    Returns the default if key is missing or value has wrong type.
    """
    value = data.get(key, default)
    if not isinstance(value, expected_type):
        return default
    return value


def _coerce_timeout(value: Any) -> int:
    """Validate and clamp the request timeout."""
    if isinstance(value, bool) or not isinstance(value, int):
        return DEFAULT_REQUEST_TIMEOUT_SECONDS
    return max(1, min(value, MAX_REQUEST_TIMEOUT_SECONDS))


def _coerce_min_query_length(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return MIN_QUERY_LENGTH
    return max(1, value)


def _dict_to_config(data: dict[str, Any]) -> UserConfig:
    """Deserialize a dictionary to UserConfig with type validation."""
    return UserConfig(
        api_key=_safe_get(data, "api_key", "", str),
        request_timeout_seconds=_coerce_timeout(
            data.get("request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT_SECONDS)
        ),
        min_query_length=_coerce_min_query_length(data.get("min_query_length", MIN_QUERY_LENGTH)),
        version=_safe_get(data, "version", 1, int),
    )


def apply_env_overrides(config: UserConfig, environ: dict[str, str] | None = None) -> UserConfig:
    """Let ``OMDB_API_KEY`` override the stored API key."""
    env = os.environ if environ is None else environ
    api_key = env.get(API_KEY_ENV_VAR, "").strip()
    if api_key:
        config.api_key = api_key
    return config


def load_config() -> UserConfig:
    """Load configuration from disk.

    Returns default config if file doesn't exist or is corrupted.
    Logs specific errors to help diagnose config issues.
    """
    config_path = get_config_path()

    if not config_path.exists():
        return UserConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            logger.warning("Config file is not a JSON object, using defaults")
            return UserConfig()
        return _dict_to_config(data)
    except json.JSONDecodeError as e:
        logger.warning("Config file has invalid JSON, using defaults: %s", e)
        return UserConfig()
    except OSError as e:
        logger.warning("Could not read config file, using defaults: %s", e)
        return UserConfig()


def save_config(config: UserConfig) -> bool:
    """Save configuration to disk atomically.

    Creates the config directory if it doesn't exist.
    Returns True on success, False on failure.
    """
    config_path = get_config_path()
    try:
        json_str = json.dumps(_config_to_dict(config), indent=2, ensure_ascii=False)
        atomic_write_text(config_path, json_str, prefix=".config-")
        return True
    except OSError as e:
        logger.error("Failed to save config: %s", e)
        return False


__all__ = [
    "API_KEY_ENV_VAR",
    "CONFIG_APP_NAME",
    "CONFIG_FILENAME",
    "apply_env_overrides",
    "get_config_path",
    "load_config",
    "save_config",
]
