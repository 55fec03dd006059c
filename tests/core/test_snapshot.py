"""Unit tests for feed event folding.

Pure function tests - no mocks needed.
"""

from src.core.snapshot import apply_feed_event


RECORD = {"lat": "10", "long": "20", "timestamp": 5000}


class TestApplyFeedEvent:
    """Tests for apply_feed_event() function."""

    def test_root_put_replaces(self):
        """A put at the root replaces the whole record."""
        result = apply_feed_event({"lat": "1"}, "put", "/", RECORD)
        assert result == RECORD

    def test_root_put_none_removes(self):
        """A put of None at the root means the record is absent."""
        assert apply_feed_event(RECORD, "put", "/", None) is None

    def test_child_put_sets_field(self):
        """A put at a child path updates one field."""
        result = apply_feed_event(RECORD, "put", "/timestamp", 6000)
        assert result == {"lat": "10", "long": "20", "timestamp": 6000}

    def test_child_put_none_removes_field(self):
        result = apply_feed_event(RECORD, "put", "/timestamp", None)
        assert result == {"lat": "10", "long": "20"}

    def test_child_put_on_absent_record(self):
        result = apply_feed_event(None, "put", "/lat", "10")
        assert result == {"lat": "10"}

    def test_root_patch_merges(self):
        """A patch at the root merges keys."""
        result = apply_feed_event(RECORD, "patch", "/", {"lat": "11", "timestamp": 7000})
        assert result == {"lat": "11", "long": "20", "timestamp": 7000}

    def test_patch_none_removes_keys(self):
        result = apply_feed_event(RECORD, "patch", "/", {"lat": None})
        assert result == {"long": "20", "timestamp": 5000}

    def test_removing_last_field_is_absent(self):
        """An empty record folds to None."""
        assert apply_feed_event({"lat": "1"}, "put", "/lat", None) is None

    def test_unknown_event_type_ignored(self):
        assert apply_feed_event(RECORD, "keep-alive", "/", None) == RECORD

    def test_does_not_mutate_input(self):
        snapshot = dict(RECORD)
        apply_feed_event(snapshot, "patch", "/", {"lat": "99"})
        assert snapshot == RECORD
