"""Tests for the TrackerSession.

Tests the coordination between the reconciliation core, the feed and
the presentation sink. Uses the in-memory feed and a mock sink.
"""

import pytest
from unittest.mock import Mock

from src.core.config import Config
from src.core.errors import DeletionError, FeedConnectionError, InitializationError
from src.core.location import Location, parse_location
from src.core.reconciler import AlertEvent, ConnectionStatus, TrackerPhase
from src.shell.memory_feed import InMemoryFeed
from src.shell.sinks import CompositeSink, LogSink, SlackSink
from src.tracker import TrackerSession, build_session


VALID_RECORD = {"lat": "19.09719", "long": "72.88258", "timestamp": 1000}


@pytest.fixture
def sink():
    """Mock presentation sink."""
    sink = Mock()
    sink.open_external_map.return_value = "https://maps.example/1"
    return sink


@pytest.fixture
def feed():
    return InMemoryFeed()


@pytest.fixture
def session(feed, sink):
    """Session with a fixed clock."""
    return TrackerSession(feed, sink, clock=lambda: 123456)


def _alerts(sink):
    return [c.args[0] for c in sink.on_alert.call_args_list]


def _errors(sink):
    return [c.args[0] for c in sink.on_error.call_args_list]


class TestBootstrap:
    """Tests for TrackerSession.bootstrap()."""

    def test_valid_record_is_not_overwritten(self, sink):
        """A read returning a valid record produces no write."""
        feed = Mock()
        feed.read.return_value = Mock(success=True, record=VALID_RECORD, error=None)
        session = TrackerSession(feed, sink)

        result = session.bootstrap()

        assert result.success is True
        assert result.seeded is False
        feed.write.assert_not_called()
        assert session.state.bootstrapped is True

    def test_absent_record_is_seeded_once(self, session, feed):
        """Absent record produces exactly one valid write."""
        result = session.bootstrap()

        assert result.success is True
        assert result.seeded is True
        assert len(feed.writes) == 1
        assert parse_location(feed.writes[0]) == Location(
            latitude=19.09719,
            longitude=72.88258,
            observed_at=123456,
        )

    def test_malformed_record_is_corrected(self, sink):
        feed = InMemoryFeed({"lat": "abc", "long": "72", "timestamp": 1})
        session = TrackerSession(feed, sink, fallback=(10.0, 20.0), clock=lambda: 7)

        session.bootstrap()

        assert feed.record == {"lat": "10.0", "long": "20.0", "timestamp": 7}

    def test_runs_once(self, session, feed):
        session.bootstrap()
        feed.delete()

        result = session.bootstrap()

        assert result.seeded is True
        assert len(feed.writes) == 1

    def test_read_failure(self, session, feed, sink):
        """A failed read reports InitializationError and stays un-bootstrapped."""
        feed.fail_reads = True

        result = session.bootstrap()

        assert result.success is False
        assert session.state.bootstrapped is False
        assert isinstance(_errors(sink)[0], InitializationError)
        assert feed.writes == []

    def test_write_failure_allows_retry(self, session, feed, sink):
        feed.fail_writes = True

        assert session.bootstrap().success is False
        assert session.state.bootstrapped is False
        assert isinstance(_errors(sink)[0], InitializationError)

        feed.fail_writes = False
        assert session.bootstrap().success is True
        assert session.state.bootstrapped is True


class TestIngest:
    """Tests for TrackerSession.ingest()."""

    def test_valid_record_publishes_state_and_alert(self, session, sink):
        session.ingest(VALID_RECORD)

        state, changed = sink.on_state.call_args.args
        assert state.phase is TrackerPhase.ACTIVE
        assert changed is True
        assert _alerts(sink) == [AlertEvent(parse_location(VALID_RECORD))]

    def test_duplicate_record_alerts_once(self, session, sink):
        session.ingest(VALID_RECORD)
        session.ingest(dict(VALID_RECORD))

        assert len(_alerts(sink)) == 1

    @pytest.mark.parametrize("raw", [
        {"lat": "north", "long": "72.88258", "timestamp": 1000},
        {"lat": "19.09719", "long": "east", "timestamp": 1000},
    ])
    def test_non_numeric_goes_idle(self, session, sink, raw):
        session.ingest(VALID_RECORD)
        session.ingest(raw)

        assert session.state.phase is TrackerPhase.IDLE
        assert len(_alerts(sink)) == 1

    def test_unchanged_idle_not_republished(self, session, sink):
        session.ingest(None)
        sink.on_state.reset_mock()

        session.ingest(None)

        sink.on_state.assert_not_called()


class TestScenarios:
    """End-to-end scenarios through the session."""

    def test_absent_at_startup_then_device_update(self, session, feed, sink):
        """Absent feed: bootstrap seeds, then a device update goes active."""
        assert session.bootstrap().seeded is True
        assert len(feed.writes) == 1

        result = session.ingest(VALID_RECORD)

        assert result.state.phase is TrackerPhase.ACTIVE
        assert result.coordinates_changed is True
        assert len(_alerts(sink)) == 1

    def test_same_coordinates_new_timestamp(self, session, sink):
        """Timestamp change alerts even when coordinates stay put."""
        session.ingest({"lat": 10, "long": 20, "timestamp": 5000})

        result = session.ingest({"lat": "10", "long": "20", "timestamp": 6000})

        assert result.coordinates_changed is False
        assert result.state.current.coordinates == (10.0, 20.0)
        assert len(_alerts(sink)) == 2
        assert _alerts(sink)[-1].location.observed_at == 6000

    def test_clear_then_absent_notification(self, feed, sink):
        """Clear goes idle; the feed's absent notification adds no alert."""
        feed.write(VALID_RECORD)
        with TrackerSession(feed, sink) as session:
            assert session.state.is_active

            assert session.clear() is True
            session.ingest(None)

            assert session.state.phase is TrackerPhase.IDLE
            assert len(_alerts(sink)) == 1

    def test_subscription_error_while_active(self, feed, sink):
        """Connection loss goes offline and idle, surfacing the error."""
        feed.write(VALID_RECORD)
        with TrackerSession(feed, sink) as session:
            assert session.state.is_active

            feed.emit_error("socket closed")

            assert session.state.connection_status is ConnectionStatus.OFFLINE
            assert session.state.current is None
            assert isinstance(_errors(sink)[-1], FeedConnectionError)

    def test_live_feed_updates(self, feed, sink):
        """Writes and partial updates flow through the subscription."""
        with TrackerSession(feed, sink) as session:
            feed.write({"lat": "10", "long": "20", "timestamp": 5000})
            feed.update({"timestamp": 6000})
            feed.update({"lat": "11"})

            assert session.state.current == Location(11.0, 20.0, 6000)
            assert [a.location.observed_at for a in _alerts(sink)] == [5000, 6000]


class TestClear:
    """Tests for TrackerSession.clear()."""

    def test_failure_preserves_state(self, feed, sink):
        feed.write(VALID_RECORD)
        feed.fail_deletes = True
        with TrackerSession(feed, sink) as session:
            before = session.state

            assert session.clear() is False

            assert session.state == before
            assert isinstance(_errors(sink)[-1], DeletionError)
            assert feed.record == VALID_RECORD


class TestLifecycle:
    """Tests for start/stop and the context manager."""

    def test_context_manager_releases_subscription(self, feed, sink):
        with TrackerSession(feed, sink) as session:
            assert session.running is True

        assert session.running is False
        feed.write(VALID_RECORD)
        sink.on_alert.assert_not_called()

    def test_start_twice_subscribes_once(self, sink):
        feed = Mock()
        feed.subscribe.return_value = Mock(closed=False)
        session = TrackerSession(feed, sink)

        session.start()
        session.start()

        feed.subscribe.assert_called_once()


class TestOpenExternalMap:
    """Tests for TrackerSession.open_external_map()."""

    def test_delegates_to_sink(self, session, sink):
        session.ingest(VALID_RECORD)

        assert session.open_external_map() == "https://maps.example/1"
        sink.open_external_map.assert_called_once_with(parse_location(VALID_RECORD))

    def test_idle_returns_none(self, session, sink):
        assert session.open_external_map() is None
        sink.open_external_map.assert_not_called()


class TestBuildSession:
    """Tests for build_session()."""

    def test_log_sink_only_without_webhook(self, feed):
        session = build_session(Config(), feed=feed)

        assert isinstance(session.sink, CompositeSink)
        assert [type(s) for s in session.sink.sinks] == [LogSink]

    def test_adds_slack_and_extra_sinks(self, feed):
        extra = Mock()
        config = Config(
            slack_webhook_url="https://hooks.slack.com/services/T/B/X",
            fallback_latitude=1.0,
            fallback_longitude=2.0,
        )

        session = build_session(config, feed=feed, sinks=[extra])

        assert [type(s) for s in session.sink.sinks[:2]] == [LogSink, SlackSink]
        assert session.sink.sinks[2] is extra
        assert session.fallback == (1.0, 2.0)
