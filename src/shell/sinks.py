"""Presentation Sinks - Imperative Shell.

Sinks receive what the tracker session produces: state snapshots (with
the coordinates_changed flag), alert events and typed errors. Each sink
renders them somewhere: the log, a Slack channel, or an in-memory
dashboard read by the HTTP API.
"""

import logging
import threading
from collections import deque
from typing import Any

from src.core.errors import TrackerError
from src.core.formatter import (
    build_maps_url,
    format_alert_text,
    format_error_text,
    format_popup_text,
    format_slack_alert,
    format_slack_error,
    format_state_dict,
    format_status_text,
    location_to_dict,
)
from src.core.location import Location
from src.core.reconciler import AlertEvent, ReconcilerState
from src.shell.slack_client import SlackClient


logger = logging.getLogger(__name__)


class PresentationSink:
    """Base sink. Every callback is a no-op unless overridden."""

    def on_state(self, state: ReconcilerState, coordinates_changed: bool) -> None:
        """Receive a state snapshot after every change."""

    def on_alert(self, event: AlertEvent) -> None:
        """Receive an alert for a timestamp-distinct observation."""

    def on_error(self, error: TrackerError) -> None:
        """Receive a typed tracker error."""

    def open_external_map(self, location: Location) -> str:
        """Hand a location to an external maps application.

        Returns:
            URL opening the location
        """
        return build_maps_url(location)


class LogSink(PresentationSink):
    """Writes everything to the application log."""

    def on_state(self, state: ReconcilerState, coordinates_changed: bool) -> None:
        logger.info("%s", format_status_text(state))
        if state.current is not None and coordinates_changed:
            logger.info("Marker moved:\n%s", format_popup_text(state.current))

    def on_alert(self, event: AlertEvent) -> None:
        logger.warning("EMERGENCY ALERT: %s", format_alert_text(event.location))

    def on_error(self, error: TrackerError) -> None:
        logger.error("%s", format_error_text(error))


class SlackSink(PresentationSink):
    """Posts alerts and errors to a Slack channel."""

    def __init__(self, client: SlackClient, notify_errors: bool = True) -> None:
        self.client = client
        self.notify_errors = notify_errors

    def on_alert(self, event: AlertEvent) -> None:
        response = self.client.send_message(format_slack_alert(event))
        if not response.success:
            logger.error("Failed to post alert to Slack: %s", response.error)

    def on_error(self, error: TrackerError) -> None:
        if not self.notify_errors:
            return
        response = self.client.send_message(format_slack_error(error))
        if not response.success:
            logger.error("Failed to post error to Slack: %s", response.error)


class DashboardSink(PresentationSink):
    """Keeps the latest snapshot and recent alerts/errors for the API.

    Callbacks arrive on the feed listener thread while the API reads
    from request handlers, so access is guarded by a lock.
    """

    def __init__(self, history_size: int = 20) -> None:
        self._lock = threading.Lock()
        self._state = ReconcilerState()
        self._coordinates_changed = False
        self._alerts: deque[AlertEvent] = deque(maxlen=history_size)
        self._errors: deque[TrackerError] = deque(maxlen=history_size)

    def on_state(self, state: ReconcilerState, coordinates_changed: bool) -> None:
        with self._lock:
            self._state = state
            self._coordinates_changed = coordinates_changed

    def on_alert(self, event: AlertEvent) -> None:
        with self._lock:
            self._alerts.appendleft(event)

    def on_error(self, error: TrackerError) -> None:
        with self._lock:
            self._errors.appendleft(error)

    @property
    def state(self) -> ReconcilerState:
        with self._lock:
            return self._state

    def snapshot(self) -> dict[str, Any]:
        """Latest state as a JSON-ready dict."""
        with self._lock:
            return format_state_dict(self._state, self._coordinates_changed)

    def recent_alerts(self) -> list[dict[str, Any]]:
        """Recent alerts, newest first."""
        with self._lock:
            return [
                {
                    **location_to_dict(event.location),
                    "message": format_alert_text(event.location),
                }
                for event in self._alerts
            ]

    def recent_errors(self) -> list[dict[str, str]]:
        """Recent errors, newest first."""
        with self._lock:
            return [
                {
                    "kind": type(error).__name__,
                    "title": error.title,
                    "detail": error.detail,
                }
                for error in self._errors
            ]


class CompositeSink(PresentationSink):
    """Fans every callback out to several sinks.

    A failing sink is logged and does not stop the others.
    """

    def __init__(self, sinks: list[PresentationSink]) -> None:
        self.sinks = list(sinks)

    def _dispatch(self, method: str, *args: Any) -> None:
        for sink in self.sinks:
            try:
                getattr(sink, method)(*args)
            except Exception:
                logger.exception("Sink %s failed in %s", type(sink).__name__, method)

    def on_state(self, state: ReconcilerState, coordinates_changed: bool) -> None:
        self._dispatch("on_state", state, coordinates_changed)

    def on_alert(self, event: AlertEvent) -> None:
        self._dispatch("on_alert", event)

    def on_error(self, error: TrackerError) -> None:
        self._dispatch("on_error", error)
