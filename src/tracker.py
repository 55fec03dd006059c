"""Tracker Session - Wires Functional Core and Imperative Shell.

This module owns the reconciler state for one session and coordinates
the flow between the feed, the pure reconciliation core and the
presentation sinks.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from src.core.config import Config
from src.core.errors import DeletionError, FeedConnectionError, InitializationError
from src.core.location import (
    DEFAULT_LATITUDE,
    DEFAULT_LONGITUDE,
    Location,
    default_location,
    location_to_record,
    needs_seed,
)
from src.core.reconciler import (
    IngestResult,
    ReconcilerState,
    clear_succeeded,
    disconnect,
    ingest,
    initial_state,
    mark_bootstrapped,
)
from src.shell.feed_client import FeedConfig, FeedSubscription, RealtimeFeedClient
from src.shell.sinks import CompositeSink, LogSink, PresentationSink, SlackSink
from src.shell.slack_client import SlackClient


logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class BootstrapResult:
    """Result of the one-time seed check.

    Attributes:
        success: Whether the check completed
        seeded: Whether a placeholder record was written
        error: Error message if failed
    """
    success: bool
    seeded: bool = False
    error: str | None = None


class TrackerSession:
    """Tracks the single accident-location record for one session.

    The feed and sink are passed in; nothing here reaches for a global
    client. start() subscribes once and stop() releases the
    subscription; use the session as a context manager to guarantee
    release.

    Feed notifications arrive on the listener's thread while bootstrap
    and clear run on the caller's, so state transitions are serialized
    with a lock. Sink callbacks run outside the lock.
    """

    def __init__(
        self,
        feed: Any,
        sink: PresentationSink | None = None,
        fallback: tuple[float, float] = (DEFAULT_LATITUDE, DEFAULT_LONGITUDE),
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        """Initialize the session.

        Args:
            feed: Feed source (read/write/delete/subscribe)
            sink: Presentation sink (a no-op sink if not provided)
            fallback: Coordinate written when the record must be seeded
            clock: Returns the current time in milliseconds
        """
        self.feed = feed
        self.sink = sink or PresentationSink()
        self.fallback = fallback
        self.clock = clock
        self._state = initial_state()
        self._lock = threading.Lock()
        self._subscription: FeedSubscription | None = None
        self._bootstrap_result: BootstrapResult | None = None

    @property
    def state(self) -> ReconcilerState:
        with self._lock:
            return self._state

    @property
    def running(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    def __enter__(self) -> "TrackerSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.stop()

    def start(self) -> None:
        """Subscribe to the feed. Calling it again while running is a no-op."""
        if self.running:
            return
        logger.info("Starting tracker session")
        self._subscription = self.feed.subscribe(self.ingest, self.handle_feed_error)

    def stop(self) -> None:
        """Release the feed subscription."""
        if self._subscription is None:
            return
        logger.info("Stopping tracker session")
        self._subscription.close()
        self._subscription = None

    def _publish(self, state: ReconcilerState, coordinates_changed: bool) -> None:
        self.sink.on_state(state, coordinates_changed)

    def bootstrap(self) -> BootstrapResult:
        """Seed a placeholder record if the feed holds none or a malformed one.

        Runs at most once per session; after a completed check further
        calls return the earlier result. A failed read or write is
        reported as an InitializationError and leaves the session
        un-bootstrapped so the caller may retry.

        Returns:
            BootstrapResult describing what happened
        """
        if self._bootstrap_result is not None:
            return self._bootstrap_result

        logger.info("Checking feed record before seeding")

        response = self.feed.read()
        if not response.success:
            return self._bootstrap_failed(response.error)

        seeded = False
        if needs_seed(response.record):
            placeholder = default_location(self.clock(), *self.fallback)
            write = self.feed.write(location_to_record(placeholder))
            if not write.success:
                return self._bootstrap_failed(write.error)
            seeded = True
            logger.info("Initial placeholder accident location set or corrected")

        with self._lock:
            self._state = mark_bootstrapped(self._state)
            state = self._state

        self._bootstrap_result = BootstrapResult(success=True, seeded=seeded)
        self._publish(state, False)
        return self._bootstrap_result

    def _bootstrap_failed(self, error: str | None) -> BootstrapResult:
        logger.error("Error checking or setting initial data: %s", error)
        self.sink.on_error(InitializationError(cause=error))
        return BootstrapResult(success=False, error=error)

    def ingest(self, raw: Any) -> IngestResult:
        """Apply one feed snapshot and publish the outcome.

        Args:
            raw: Raw record from the feed, or None if absent

        Returns:
            IngestResult from the core
        """
        with self._lock:
            previous = self._state
            result = ingest(previous, raw)
            self._state = result.state

        if raw is not None and not result.state.is_active:
            logger.warning("Received malformed accident location data: %r", raw)

        if result.state != previous or result.coordinates_changed:
            self._publish(result.state, result.coordinates_changed)

        if result.alert is not None:
            self.sink.on_alert(result.alert)

        return result

    def handle_feed_error(self, message: str) -> None:
        """Apply a subscription error: go offline, drop the location."""
        logger.error("Feed connection error: %s", message)

        with self._lock:
            self._state = disconnect(self._state)
            state = self._state

        self.sink.on_error(FeedConnectionError(cause=message))
        self._publish(state, False)

    def clear(self) -> bool:
        """Delete the feed record.

        On failure the state is left untouched and a DeletionError is
        reported. No retry is attempted.

        Returns:
            True if the record was deleted
        """
        response = self.feed.delete()

        if not response.success:
            logger.error("Failed to clear location: %s", response.error)
            self.sink.on_error(DeletionError(cause=response.error))
            return False

        with self._lock:
            previous = self._state
            self._state = clear_succeeded(previous)
            state = self._state

        logger.info("Emergency location data cleared")
        if state != previous:
            self._publish(state, False)
        return True

    def open_external_map(self) -> str | None:
        """Open the current location in an external maps application.

        Returns:
            The maps URL, or None when there is no active location
        """
        location: Location | None = self.state.current
        if location is None:
            logger.info("No active accident location to show on the map")
            return None
        return self.sink.open_external_map(location)


def build_feed(config: Config) -> RealtimeFeedClient:
    """Create the Firebase feed client for the configured record."""
    return RealtimeFeedClient(
        FeedConfig(
            database_url=config.database_url,
            record_path=config.record_path,
            credentials_path=config.credentials_path,
        )
    )


def build_session(
    config: Config,
    feed: Any = None,
    sinks: list[PresentationSink] | None = None,
) -> TrackerSession:
    """Create a session from configuration.

    Args:
        config: Application configuration
        feed: Feed source (a RealtimeFeedClient if not provided)
        sinks: Extra sinks, added after the log and Slack sinks

    Returns:
        A session that has not been started yet
    """
    if feed is None:
        feed = build_feed(config)

    all_sinks: list[PresentationSink] = [LogSink()]
    if config.slack_webhook_url:
        all_sinks.append(SlackSink(SlackClient(config.slack_webhook_url)))
    all_sinks.extend(sinks or [])

    return TrackerSession(
        feed,
        CompositeSink(all_sinks),
        fallback=config.fallback_coordinates,
    )
