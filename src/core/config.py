"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

import math
from dataclasses import dataclass, field

from src.core.location import DEFAULT_LATITUDE, DEFAULT_LONGITUDE


# Record path used by the in-vehicle devices
DEFAULT_RECORD_PATH = "accedentlocation"


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        database_url: Firebase Realtime Database URL
        record_path: Path of the single tracked record
        credentials_path: Service account JSON (None for default credentials)
        fallback_latitude: Latitude of the placeholder written by bootstrap
        fallback_longitude: Longitude of the placeholder written by bootstrap
        slack_webhook_url: Slack webhook for alerts (None to disable)
        alert_history_size: Alerts kept for the dashboard API
        admin_api_key: Key required to clear the record through the API
        log_level: Logging level name
    """
    database_url: str | None = None
    record_path: str = DEFAULT_RECORD_PATH
    credentials_path: str | None = None
    fallback_latitude: float = DEFAULT_LATITUDE
    fallback_longitude: float = DEFAULT_LONGITUDE
    slack_webhook_url: str | None = None
    alert_history_size: int = 20
    admin_api_key: str | None = None
    log_level: str = "INFO"

    @property
    def fallback_coordinates(self) -> tuple[float, float]:
        return (self.fallback_latitude, self.fallback_longitude)


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def validate_coordinates(lat: float, lon: float, field_name: str) -> list[ValidationError]:
    """Validate latitude/longitude coordinates.

    Pure function.

    Args:
        lat: Latitude value
        lon: Longitude value
        field_name: Name of the field for error messages

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if not math.isfinite(lat) or not -90 <= lat <= 90:
        errors.append(ValidationError(
            field=field_name,
            message=f"Latitude {lat} out of range [-90, 90]",
        ))

    if not math.isfinite(lon) or not -180 <= lon <= 180:
        errors.append(ValidationError(
            field=field_name,
            message=f"Longitude {lon} out of range [-180, 180]",
        ))

    return errors


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    if not config.database_url:
        errors.append(ValidationError(
            field="database_url",
            message="No Firebase database URL configured",
        ))

    if not config.record_path or not config.record_path.strip("/"):
        errors.append(ValidationError(
            field="record_path",
            message="Record path must not be empty",
        ))

    errors.extend(validate_coordinates(
        config.fallback_latitude,
        config.fallback_longitude,
        "fallback",
    ))

    if config.alert_history_size <= 0:
        errors.append(ValidationError(
            field="alert_history_size",
            message=f"Alert history size must be positive, got {config.alert_history_size}",
        ))

    if config.slack_webhook_url and config.slack_webhook_url.startswith("${"):
        errors.append(ValidationError(
            field="slack_webhook_url",
            message="Webhook URL not resolved (still contains placeholder)",
            severity="warning",
        ))

    if not config.admin_api_key:
        errors.append(ValidationError(
            field="admin_api_key",
            message="No admin API key configured; the API cannot clear the record",
            severity="warning",
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
