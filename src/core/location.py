"""Accident location model and parsing - Pure functions.

This module turns the loosely-typed record written by the in-vehicle
device into a typed Location. Devices write latitude and longitude as
strings, so parsing coerces them to floats.
All functions are pure with no side effects.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


# Placeholder coordinate used when the feed holds no usable record
DEFAULT_LATITUDE = 19.09719
DEFAULT_LONGITUDE = 72.88258

# Last millisecond of 9999-12-31 UTC, the latest instant datetime can hold
MAX_TIMESTAMP_MS = 253402300799999


@dataclass(frozen=True)
class Location:
    """Immutable accident location.

    Attributes:
        latitude: Accident latitude
        longitude: Accident longitude
        observed_at: Device timestamp in milliseconds since epoch
    """
    latitude: float
    longitude: float
    observed_at: int

    @property
    def coordinates(self) -> tuple[float, float]:
        """Return (latitude, longitude) tuple."""
        return (self.latitude, self.longitude)

    @property
    def observed_at_datetime(self) -> datetime:
        """Return observation time as a UTC datetime."""
        return datetime.fromtimestamp(self.observed_at / 1000, tz=timezone.utc)


def _parse_coordinate(value: Any) -> float | None:
    """Parse a coordinate that may arrive as a numeric string.

    Pure function.

    Returns:
        Finite float, or None if the value is missing or non-numeric
    """
    # bool is an int subclass, never a coordinate
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        value = value.strip()
        # float() also takes "1_000"; devices never write digit separators
        if not value or "_" in value:
            return None
    elif not isinstance(value, (int, float)):
        return None

    try:
        number = float(value)
    except (TypeError, ValueError):
        return None

    if not math.isfinite(number):
        return None
    return number


def _parse_timestamp(value: Any) -> int | None:
    """Parse a millisecond timestamp.

    Pure function. Integral floats are accepted since JSON decoders
    may produce 1000.0 for 1000. Timestamps past year 9999 are rejected.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        timestamp = value
    elif isinstance(value, float) and value.is_integer():
        timestamp = int(value)
    else:
        return None

    if timestamp < 0 or timestamp > MAX_TIMESTAMP_MS:
        return None
    return timestamp


def parse_location(raw: Any) -> Location | None:
    """Parse a raw feed record into a Location.

    Pure function: takes the raw mapping, returns a typed Location or
    None if the record is absent or malformed.

    Args:
        raw: Record from the feed ({"lat": ..., "long": ..., "timestamp": ...})

    Returns:
        Location object or None if validation fails
    """
    if not isinstance(raw, dict):
        return None

    latitude = _parse_coordinate(raw.get("lat"))
    longitude = _parse_coordinate(raw.get("long"))
    timestamp = _parse_timestamp(raw.get("timestamp"))

    if latitude is None or longitude is None or timestamp is None:
        return None

    return Location(
        latitude=latitude,
        longitude=longitude,
        observed_at=timestamp,
    )


def needs_seed(raw: Any) -> bool:
    """Check whether the feed record must be replaced by a placeholder.

    Pure function. A record that already validates is never replaced.
    """
    return parse_location(raw) is None


def location_to_record(location: Location) -> dict[str, Any]:
    """Serialize a Location into the feed's record shape.

    Pure function. Coordinates are written as strings to match what
    devices write.

    Args:
        location: Location to serialize

    Returns:
        Record dict ready to be written to the feed
    """
    return {
        "lat": repr(location.latitude),
        "long": repr(location.longitude),
        "timestamp": location.observed_at,
    }


def default_location(
    now_ms: int,
    latitude: float = DEFAULT_LATITUDE,
    longitude: float = DEFAULT_LONGITUDE,
) -> Location:
    """Create the placeholder location written during bootstrap.

    Pure function.

    Args:
        now_ms: Current time in milliseconds since epoch
        latitude: Fallback latitude
        longitude: Fallback longitude

    Returns:
        Placeholder Location
    """
    return Location(
        latitude=float(latitude),
        longitude=float(longitude),
        observed_at=int(now_ms),
    )
