"""Message formatting - Pure functions.

This module formats tracker state, alerts and errors into notification
text, Slack payloads and API-ready dicts.
All functions are pure with no side effects.
"""

from typing import Any
from urllib.parse import urlencode

from src.core.errors import TrackerError
from src.core.location import Location
from src.core.reconciler import AlertEvent, ReconcilerState


GOOGLE_MAPS_SEARCH_URL = "https://www.google.com/maps/search/"

ALERT_TITLE = "🚨 EMERGENCY ALERT"
POPUP_TITLE = "🚨 NEW ACCIDENT OCCURRED!"


def format_coordinates(location: Location) -> str:
    """Format coordinates to six decimal places.

    Pure function.
    """
    return f"{location.latitude:.6f}, {location.longitude:.6f}"


def format_observed_at(location: Location) -> str:
    """Format the observation time in UTC.

    Pure function.
    """
    return location.observed_at_datetime.strftime("%Y-%m-%d %H:%M:%S UTC")


def build_maps_url(location: Location) -> str:
    """Build a Google Maps search URL for a location.

    Pure function.

    Args:
        location: Location to open

    Returns:
        URL opening the coordinates in Google Maps
    """
    query = urlencode(
        {"api": 1, "query": f"{location.latitude},{location.longitude}"},
        safe=",",
    )
    return f"{GOOGLE_MAPS_SEARCH_URL}?{query}"


def format_alert_text(location: Location) -> str:
    """Format the emergency notification body.

    Pure function.
    """
    return (
        f"Incident detected at coordinates {format_coordinates(location)}. "
        "Emergency responders dispatched immediately. "
        "Proceed with caution - situation requires urgent attention."
    )


def format_popup_text(location: Location) -> str:
    """Format the map marker popup.

    Pure function.
    """
    return "\n".join([
        POPUP_TITLE,
        f"Latitude: {location.latitude:.6f}",
        f"Longitude: {location.longitude:.6f}",
        f"Last Update: {format_observed_at(location)}",
    ])


def format_status_text(state: ReconcilerState) -> str:
    """Format a one-line system status.

    Pure function.
    """
    connection = "SYSTEM ONLINE" if state.is_online else "SYSTEM OFFLINE"
    if state.is_active:
        tracking = "Tracking 1 active location. All systems operational."
    else:
        tracking = "No active locations. All systems operational."
    return f"{connection}: {tracking}"


def format_error_text(error: TrackerError) -> str:
    """Format an error as 'Title: detail'.

    Pure function.
    """
    return f"{error.title}: {error.detail}"


def format_slack_alert(event: AlertEvent) -> dict[str, Any]:
    """Format an alert as a Slack message payload.

    Pure function.

    Args:
        event: Alert to format

    Returns:
        Slack message payload dict
    """
    location = event.location
    maps_url = build_maps_url(location)
    timestamp = location.observed_at // 1000

    text = f"<!everyone> {ALERT_TITLE} at {format_coordinates(location)}"

    blocks: list[dict[str, Any]] = [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": ALERT_TITLE,
            },
        },
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": format_alert_text(location),
            },
        },
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": (
                    f"<{maps_url}|{format_coordinates(location)}> at "
                    f"<!date^{timestamp}^{{date_short_pretty}} {{time}}|"
                    f"{format_observed_at(location)}>"
                ),
            },
        },
        {
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "text": {
                        "type": "plain_text",
                        "text": "Open in Google Maps",
                    },
                    "url": maps_url,
                },
            ],
        },
        {"type": "divider"},
    ]

    return {
        "text": text,
        "blocks": blocks,
    }


def format_slack_error(error: TrackerError) -> dict[str, Any]:
    """Format a tracker error as a Slack message payload.

    Pure function.
    """
    return {
        "text": f"⚠️ {format_error_text(error)}",
        "blocks": [
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": f"⚠️ *{error.title}*\n{error.detail}",
                },
            },
        ],
    }


def location_to_dict(location: Location) -> dict[str, Any]:
    """Convert a location to a JSON-ready dict.

    Pure function.
    """
    return {
        "latitude": location.latitude,
        "longitude": location.longitude,
        "observed_at": location.observed_at,
        "observed_at_iso": location.observed_at_datetime.isoformat(),
        "maps_url": build_maps_url(location),
    }


def format_state_dict(
    state: ReconcilerState,
    coordinates_changed: bool = False,
) -> dict[str, Any]:
    """Convert a state snapshot to a JSON-ready dict.

    Pure function.

    Args:
        state: Reconciler state
        coordinates_changed: Change flag from the last ingest

    Returns:
        Dict describing the snapshot
    """
    return {
        "phase": state.phase.value,
        "connection_status": state.connection_status.value,
        "bootstrapped": state.bootstrapped,
        "coordinates_changed": coordinates_changed if state.is_active else False,
        "location": location_to_dict(state.current) if state.current else None,
        "status": format_status_text(state),
    }
