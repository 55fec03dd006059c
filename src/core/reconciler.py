"""Location feed reconciliation - Pure functions.

This module holds the state machine that turns raw feed snapshots into
validated, deduplicated state transitions. Two independent signals come
out of every valid update:

- coordinates_changed: latitude or longitude differ from the previous
  location (drives map re-focus and popup behaviour)
- alert: the timestamp differs from the previous location (drives
  notifications)

The feed does not guarantee that both change together, so both are
exposed. All functions here are pure; the session in src/tracker.py
owns the current state and performs the I/O.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from src.core.location import Location, parse_location


class ConnectionStatus(Enum):
    """Feed connectivity as last observed."""
    ONLINE = "online"
    OFFLINE = "offline"


class TrackerPhase(Enum):
    """Whether an incident is currently being tracked."""
    IDLE = "idle"
    ACTIVE = "active"


@dataclass(frozen=True)
class ReconcilerState:
    """Process-local view of the feed record.

    Attributes:
        current: Last validated location, None when idle
        connection_status: Online/offline as last observed
        bootstrapped: Whether the one-time seed check has completed
    """
    current: Location | None = None
    connection_status: ConnectionStatus = ConnectionStatus.OFFLINE
    bootstrapped: bool = False

    @property
    def is_active(self) -> bool:
        """Returns True if a validated location is held."""
        return self.current is not None

    @property
    def is_online(self) -> bool:
        return self.connection_status is ConnectionStatus.ONLINE

    @property
    def phase(self) -> TrackerPhase:
        return TrackerPhase.ACTIVE if self.is_active else TrackerPhase.IDLE


@dataclass(frozen=True)
class AlertEvent:
    """A new, timestamp-distinct observation worth surfacing.

    Attributes:
        location: The newly observed location
    """
    location: Location


@dataclass(frozen=True)
class IngestResult:
    """Outcome of ingesting one feed snapshot.

    Attributes:
        state: State after the update
        coordinates_changed: Lat/long differ from the previous location
        alert: Alert to surface, None if the timestamp did not change
    """
    state: ReconcilerState
    coordinates_changed: bool = False
    alert: AlertEvent | None = None


def initial_state() -> ReconcilerState:
    """Return the state of a freshly created reconciler."""
    return ReconcilerState()


def coordinates_differ(previous: Location | None, new: Location) -> bool:
    """Check whether the new location moved since the previous one.

    Pure function. Uses exact numeric equality after parsing.
    """
    if previous is None:
        return True
    return (
        previous.latitude != new.latitude
        or previous.longitude != new.longitude
    )


def is_new_observation(previous: Location | None, new: Location) -> bool:
    """Check whether the new location carries a different timestamp.

    Pure function.
    """
    if previous is None:
        return True
    return previous.observed_at != new.observed_at


def ingest(state: ReconcilerState, raw: Any) -> IngestResult:
    """Apply one raw feed snapshot to the state.

    Pure function.

    Absent or invalid records move the state to idle without an alert;
    that is a "no active incident" outcome, not an error. Valid records
    always replace the current location.

    Args:
        state: Current reconciler state
        raw: Raw record from the feed, or None if no record exists

    Returns:
        IngestResult with the new state and both change signals
    """
    location = parse_location(raw)

    if location is None:
        return IngestResult(
            state=replace(
                state,
                current=None,
                connection_status=ConnectionStatus.ONLINE,
            ),
        )

    previous = state.current
    alert = AlertEvent(location) if is_new_observation(previous, location) else None

    return IngestResult(
        state=replace(
            state,
            current=location,
            connection_status=ConnectionStatus.ONLINE,
        ),
        coordinates_changed=coordinates_differ(previous, location),
        alert=alert,
    )


def disconnect(state: ReconcilerState) -> ReconcilerState:
    """Apply a subscription error: go offline and drop the location.

    Pure function.
    """
    return replace(
        state,
        current=None,
        connection_status=ConnectionStatus.OFFLINE,
    )


def clear_succeeded(state: ReconcilerState) -> ReconcilerState:
    """Apply a successful deletion of the feed record.

    Pure function. The feed's own follow-up notification of the absent
    record is idempotent with this.
    """
    return replace(state, current=None)


def mark_bootstrapped(state: ReconcilerState) -> ReconcilerState:
    """Record that the one-time seed check has completed.

    Pure function.
    """
    return replace(state, bootstrapped=True)
