"""Unit tests for message formatting.

Pure function tests - no mocks needed.
"""

import pytest

from src.core.errors import DeletionError, FeedConnectionError, InitializationError
from src.core.formatter import (
    build_maps_url,
    format_alert_text,
    format_coordinates,
    format_error_text,
    format_observed_at,
    format_popup_text,
    format_slack_alert,
    format_slack_error,
    format_state_dict,
    format_status_text,
)
from src.core.location import Location
from src.core.reconciler import (
    AlertEvent,
    ConnectionStatus,
    ReconcilerState,
    ingest,
    initial_state,
)


@pytest.fixture
def location():
    """Sample accident location (2024-06-10 06:13:20 UTC)."""
    return Location(latitude=19.09719, longitude=72.88258, observed_at=1718000000000)


@pytest.fixture
def active_state(location):
    return ReconcilerState(
        current=location,
        connection_status=ConnectionStatus.ONLINE,
        bootstrapped=True,
    )


class TestFormatCoordinates:
    """Tests for format_coordinates() and format_observed_at()."""

    def test_six_decimals(self, location):
        assert format_coordinates(location) == "19.097190, 72.882580"

    def test_observed_at_utc(self, location):
        assert format_observed_at(location) == "2024-06-10 06:13:20 UTC"


class TestBuildMapsUrl:
    """Tests for build_maps_url() function."""

    def test_google_maps_search_url(self, location):
        assert build_maps_url(location) == (
            "https://www.google.com/maps/search/?api=1&query=19.09719,72.88258"
        )

    def test_negative_coordinates(self):
        url = build_maps_url(Location(latitude=-33.5, longitude=-70.25, observed_at=0))
        assert url.endswith("query=-33.5,-70.25")


class TestAlertText:
    """Tests for format_alert_text() and format_popup_text()."""

    def test_alert_mentions_coordinates(self, location):
        text = format_alert_text(location)

        assert "19.097190, 72.882580" in text
        assert "Emergency responders dispatched immediately" in text

    def test_popup_lines(self, location):
        lines = format_popup_text(location).splitlines()

        assert lines[0] == "🚨 NEW ACCIDENT OCCURRED!"
        assert lines[1] == "Latitude: 19.097190"
        assert lines[2] == "Longitude: 72.882580"
        assert lines[3] == "Last Update: 2024-06-10 06:13:20 UTC"


class TestFormatStatusText:
    """Tests for format_status_text() function."""

    def test_active_online(self, active_state):
        text = format_status_text(active_state)

        assert text.startswith("SYSTEM ONLINE")
        assert "Tracking 1 active location" in text

    def test_idle_offline(self):
        text = format_status_text(ReconcilerState())

        assert text.startswith("SYSTEM OFFLINE")
        assert "No active locations" in text


class TestFormatErrorText:
    """Tests for format_error_text() function."""

    @pytest.mark.parametrize("error,title", [
        (InitializationError(), "Data Init Error"),
        (FeedConnectionError(), "Connection Error"),
        (DeletionError(), "Delete Failed"),
    ])
    def test_titles(self, error, title):
        assert format_error_text(error).startswith(f"{title}: ")

    def test_custom_detail(self):
        error = DeletionError("permission denied")
        assert format_error_text(error) == "Delete Failed: permission denied"


class TestFormatSlackAlert:
    """Tests for format_slack_alert() function."""

    def test_payload_structure(self, location):
        payload = format_slack_alert(AlertEvent(location))

        assert "<!everyone>" in payload["text"]
        assert "19.097190, 72.882580" in payload["text"]
        assert payload["blocks"][0]["type"] == "header"
        assert payload["blocks"][0]["text"]["text"] == "🚨 EMERGENCY ALERT"
        assert payload["blocks"][-1] == {"type": "divider"}

    def test_includes_maps_button(self, location):
        payload = format_slack_alert(AlertEvent(location))

        actions = [b for b in payload["blocks"] if b["type"] == "actions"]
        assert actions[0]["elements"][0]["url"] == build_maps_url(location)

    def test_uses_slack_date_formatting(self, location):
        payload = format_slack_alert(AlertEvent(location))
        body = payload["blocks"][2]["text"]["text"]

        assert "<!date^1718000000^" in body


class TestFormatSlackError:
    """Tests for format_slack_error() function."""

    def test_contains_title_and_detail(self):
        payload = format_slack_error(FeedConnectionError())

        assert "Connection Error" in payload["text"]
        assert "Lost connection" in payload["blocks"][0]["text"]["text"]


class TestFormatStateDict:
    """Tests for format_state_dict() function."""

    def test_active_state(self, active_state, location):
        result = format_state_dict(active_state, coordinates_changed=True)

        assert result["phase"] == "active"
        assert result["connection_status"] == "online"
        assert result["bootstrapped"] is True
        assert result["coordinates_changed"] is True
        assert result["location"]["latitude"] == 19.09719
        assert result["location"]["observed_at"] == 1718000000000
        assert result["location"]["maps_url"] == build_maps_url(location)

    def test_idle_state_never_reports_change(self):
        result = format_state_dict(ReconcilerState(), coordinates_changed=True)

        assert result["phase"] == "idle"
        assert result["location"] is None
        assert result["coordinates_changed"] is False

    def test_far_future_record_stays_formattable(self):
        """A timestamp past year 9999 never becomes a location to format."""
        result = ingest(initial_state(), {"lat": "10", "long": "20", "timestamp": 10**17})

        snapshot = format_state_dict(result.state, result.coordinates_changed)

        assert snapshot["phase"] == "idle"
        assert snapshot["location"] is None
        assert result.alert is None
