"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

The Config model is defined in src/core/config.py.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from src.core.config import DEFAULT_RECORD_PATH, Config
from src.core.location import DEFAULT_LATITUDE, DEFAULT_LONGITUDE
from src.shell.secret_manager_client import SecretManagerClient, SecretManagerConfig


logger = logging.getLogger(__name__)


def _get_secret_manager_client() -> Optional[SecretManagerClient]:
    """Get a Secret Manager client.

    Returns None if GCP_PROJECT is not set (e.g., local development).
    """
    project_id = os.environ.get("GCP_PROJECT")
    if project_id:
        return SecretManagerClient(SecretManagerConfig(project_id=project_id))
    return None


def _resolve_value(value: Any, secret_client: Optional[SecretManagerClient] = None) -> Any:
    """Resolve a value that may contain secret or env var placeholders.

    Args:
        value: Value to resolve (may contain ${...} placeholders)
        secret_client: Client for resolving secrets

    Returns:
        Resolved value
    """
    if not isinstance(value, str):
        return value

    if secret_client:
        return secret_client.resolve(value)

    # No secret client - only handle env vars
    if value.startswith("${") and value.endswith("}"):
        var_spec = value[2:-1]
        if not var_spec.startswith("secret:"):
            env_value = os.environ.get(var_spec)
            if env_value:
                return env_value
            logger.warning("Environment variable %s not set", var_spec)

    return value


def _optional_str(value: Any) -> str | None:
    """Normalize blank values to None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only placeholder expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    secret_client = _get_secret_manager_client()
    firebase = data.get("firebase", {}) or {}
    fallback = data.get("fallback_location", {}) or {}
    slack = data.get("slack", {}) or {}
    api = data.get("api", {}) or {}

    return Config(
        database_url=_optional_str(_resolve_value(firebase.get("database_url"), secret_client)),
        record_path=firebase.get("record_path", DEFAULT_RECORD_PATH),
        credentials_path=_optional_str(
            _resolve_value(firebase.get("credentials_path"), secret_client)
        ),
        fallback_latitude=float(fallback.get("latitude", DEFAULT_LATITUDE)),
        fallback_longitude=float(fallback.get("longitude", DEFAULT_LONGITUDE)),
        slack_webhook_url=_optional_str(_resolve_value(slack.get("webhook_url"), secret_client)),
        alert_history_size=int(api.get("alert_history_size", 20)),
        admin_api_key=_optional_str(_resolve_value(api.get("admin_api_key"), secret_client)),
        log_level=str(data.get("log_level", "INFO")).upper(),
    )


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "config/config.yaml")

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return Config()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: record %s at %s",
        config.record_path,
        config.database_url,
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Useful for simple deployments without a YAML file.

    Environment variables:
        FIREBASE_DATABASE_URL: Realtime Database URL
        FEED_RECORD_PATH: Path of the tracked record
        GOOGLE_APPLICATION_CREDENTIALS: Service account JSON path
        FALLBACK_LATITUDE / FALLBACK_LONGITUDE: Placeholder coordinate
        SLACK_WEBHOOK_URL: Webhook URL for alerts (or SLACK_WEBHOOK_SECRET)
        ADMIN_API_KEY: Key required to clear the record through the API
        ALERT_HISTORY_SIZE: Alerts kept for the dashboard API
        LOG_LEVEL: Logging level

    Returns:
        Config object from environment
    """
    secret_client = _get_secret_manager_client()

    webhook_url = None
    secret_name = os.environ.get("SLACK_WEBHOOK_SECRET")
    if secret_client and secret_name:
        webhook_url = secret_client.get_secret(secret_name)
        if webhook_url:
            logger.info("Using Slack webhook from Secret Manager")

    if not webhook_url:
        webhook_url = os.environ.get("SLACK_WEBHOOK_URL")

    return Config(
        database_url=_optional_str(os.environ.get("FIREBASE_DATABASE_URL")),
        record_path=os.environ.get("FEED_RECORD_PATH", DEFAULT_RECORD_PATH),
        credentials_path=_optional_str(os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")),
        fallback_latitude=float(os.environ.get("FALLBACK_LATITUDE", DEFAULT_LATITUDE)),
        fallback_longitude=float(os.environ.get("FALLBACK_LONGITUDE", DEFAULT_LONGITUDE)),
        slack_webhook_url=_optional_str(webhook_url),
        alert_history_size=int(os.environ.get("ALERT_HISTORY_SIZE", "20")),
        admin_api_key=_optional_str(os.environ.get("ADMIN_API_KEY")),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )


def get_config() -> Config:
    """Load configuration from file or environment.

    A CONFIG_PATH wins; otherwise FIREBASE_DATABASE_URL selects the
    environment loader; otherwise the default config path is tried.
    """
    config_path = os.environ.get("CONFIG_PATH")

    if config_path:
        return load_config(config_path)
    elif os.environ.get("FIREBASE_DATABASE_URL"):
        return load_config_from_env()
    else:
        return load_config()
