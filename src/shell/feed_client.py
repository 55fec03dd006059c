"""Realtime Feed Client - Imperative Shell.

This module handles reading, writing, deleting and subscribing to the
single accident-location record in Firebase Realtime Database.

All I/O is contained here; validation and reconciliation are in the
core module.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

import firebase_admin
from firebase_admin import credentials, db

from src.core.config import DEFAULT_RECORD_PATH
from src.core.snapshot import apply_feed_event


logger = logging.getLogger(__name__)


# Firebase app name, kept separate from any default app in the process
DEFAULT_APP_NAME = "accident-tracker"

# Stream event types that end the subscription
TERMINAL_EVENT_TYPES = ("cancel", "auth_revoked")


RecordCallback = Callable[[Any], None]
ErrorCallback = Callable[[str], None]


@dataclass
class FeedConfig:
    """Configuration for the realtime feed client.

    Attributes:
        database_url: Firebase Realtime Database URL
        record_path: Path of the tracked record
        credentials_path: Service account JSON (None for default credentials)
        app_name: Firebase app name
    """
    database_url: str | None = None
    record_path: str = DEFAULT_RECORD_PATH
    credentials_path: str | None = None
    app_name: str = DEFAULT_APP_NAME


@dataclass
class FeedResponse:
    """Result of a one-shot feed operation.

    Attributes:
        success: Whether the operation completed
        record: Record read from the feed (read only; None if absent)
        error: Error message if failed
    """
    success: bool
    record: Any = None
    error: str | None = None


class FeedSubscription:
    """A live subscription to the tracked record.

    Folds streaming put/patch events into whole-record snapshots and
    hands each snapshot to on_record. Terminal stream events and
    callback failures go to on_error.
    """

    def __init__(
        self,
        on_record: RecordCallback,
        on_error: ErrorCallback,
    ) -> None:
        self._on_record = on_record
        self._on_error = on_error
        self._snapshot: Any = None
        self._registration: Any = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def attach(self, registration: Any) -> None:
        """Attach the underlying listener registration."""
        self._registration = registration

    def handle_event(self, event: Any) -> None:
        """Handle one streaming event from the database listener."""
        if self._closed:
            return

        event_type = getattr(event, "event_type", None)

        if event_type in TERMINAL_EVENT_TYPES:
            logger.error("Feed subscription ended by server: %s", event_type)
            self._snapshot = None
            self._on_error(f"Subscription {event_type}: {getattr(event, 'data', None)}")
            return

        try:
            self._snapshot = apply_feed_event(
                self._snapshot,
                event_type,
                getattr(event, "path", "/"),
                getattr(event, "data", None),
            )
            self._on_record(self._snapshot)
        except Exception as e:
            logger.exception("Failed to handle feed event")
            self._on_error(str(e))

    def close(self) -> None:
        """Stop listening. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True

        if self._registration is not None:
            try:
                self._registration.close()
                logger.info("Feed subscription closed")
            except Exception as e:
                logger.error("Failed to close feed subscription: %s", str(e))


class RealtimeFeedClient:
    """Client for the tracked record in Firebase Realtime Database.

    This is part of the imperative shell - it handles database I/O.

    Record structure:
    {
        "lat": "19.09719",
        "long": "72.88258",
        "timestamp": 1718000000000
    }
    """

    def __init__(self, config: FeedConfig | None = None) -> None:
        """Initialize feed client.

        Args:
            config: Feed configuration
        """
        self.config = config or FeedConfig()
        self._app: firebase_admin.App | None = None

    @property
    def app(self) -> firebase_admin.App:
        """Lazy initialization of the Firebase app."""
        if self._app is None:
            try:
                self._app = firebase_admin.get_app(self.config.app_name)
            except ValueError:
                if self.config.credentials_path:
                    cred = credentials.Certificate(self.config.credentials_path)
                else:
                    cred = credentials.ApplicationDefault()
                self._app = firebase_admin.initialize_app(
                    cred,
                    {"databaseURL": self.config.database_url},
                    name=self.config.app_name,
                )
                logger.info("Initialized Firebase app %s", self.config.app_name)
        return self._app

    def _get_ref(self) -> Any:
        """Get reference to the tracked record."""
        return db.reference(self.config.record_path, app=self.app)

    def read(self) -> FeedResponse:
        """Read the tracked record once.

        This method performs database I/O.

        Returns:
            FeedResponse with the raw record (None if absent)
        """
        logger.info("Reading record %s", self.config.record_path)

        try:
            record = self._get_ref().get()
            return FeedResponse(success=True, record=record)

        except Exception as e:
            logger.error("Failed to read record: %s", str(e))
            return FeedResponse(success=False, error=str(e))

    def write(self, record: dict[str, Any]) -> FeedResponse:
        """Overwrite the tracked record.

        This method performs database I/O.

        Args:
            record: Raw record to write

        Returns:
            FeedResponse indicating success or failure
        """
        logger.info("Writing record %s", self.config.record_path)

        try:
            self._get_ref().set(record)
            logger.info("Successfully wrote record")
            return FeedResponse(success=True, record=record)

        except Exception as e:
            logger.error("Failed to write record: %s", str(e))
            return FeedResponse(success=False, error=str(e))

    def delete(self) -> FeedResponse:
        """Delete the tracked record.

        This method performs database I/O.

        Returns:
            FeedResponse indicating success or failure
        """
        logger.info("Deleting record %s", self.config.record_path)

        try:
            self._get_ref().delete()
            logger.info("Successfully deleted record")
            return FeedResponse(success=True)

        except Exception as e:
            logger.error("Failed to delete record: %s", str(e))
            return FeedResponse(success=False, error=str(e))

    def subscribe(
        self,
        on_record: RecordCallback,
        on_error: ErrorCallback,
    ) -> FeedSubscription:
        """Subscribe to the tracked record.

        Snapshots are delivered on the listener's own thread in
        arrival order. A failure to start listening is reported through
        on_error and returns a closed subscription.

        Args:
            on_record: Called with each whole-record snapshot (None if absent)
            on_error: Called with an error message when the stream fails

        Returns:
            FeedSubscription to close on shutdown
        """
        logger.info("Subscribing to record %s", self.config.record_path)
        subscription = FeedSubscription(on_record, on_error)

        try:
            registration = self._get_ref().listen(subscription.handle_event)
            subscription.attach(registration)

        except Exception as e:
            logger.error("Failed to subscribe to record: %s", str(e))
            subscription.close()
            on_error(str(e))

        return subscription
