"""In-Memory Feed - Imperative Shell.

A process-local stand-in for the realtime database with the same
interface as RealtimeFeedClient. Used for local runs without Firebase
and by tests. Subscribers are notified synchronously on every write
and delete, in call order.
"""

import copy
import logging
from typing import Any

from src.shell.feed_client import (
    ErrorCallback,
    FeedResponse,
    FeedSubscription,
    RecordCallback,
)


logger = logging.getLogger(__name__)


class _Event:
    """Minimal stream event, shaped like the database listener's."""

    def __init__(self, event_type: str, path: str, data: Any) -> None:
        self.event_type = event_type
        self.path = path
        self.data = data


class InMemoryFeed:
    """Feed holding a single record in memory.

    Attributes:
        fail_reads: Make read() fail
        fail_writes: Make write() fail
        fail_deletes: Make delete() fail
        writes: Every record successfully written, in order
    """

    def __init__(self, record: Any = None) -> None:
        self._record = copy.deepcopy(record)
        self._subscriptions: list[FeedSubscription] = []
        self.fail_reads = False
        self.fail_writes = False
        self.fail_deletes = False
        self.writes: list[Any] = []
        self.deletes = 0

    @property
    def record(self) -> Any:
        return copy.deepcopy(self._record)

    def _notify(self, event_type: str, path: str, data: Any) -> None:
        self._subscriptions = [s for s in self._subscriptions if not s.closed]
        for subscription in list(self._subscriptions):
            subscription.handle_event(_Event(event_type, path, copy.deepcopy(data)))

    def read(self) -> FeedResponse:
        if self.fail_reads:
            logger.error("Failed to read record: read failure injected")
            return FeedResponse(success=False, error="read failure injected")
        return FeedResponse(success=True, record=self.record)

    def write(self, record: dict[str, Any]) -> FeedResponse:
        if self.fail_writes:
            logger.error("Failed to write record: write failure injected")
            return FeedResponse(success=False, error="write failure injected")

        self._record = copy.deepcopy(record)
        self.writes.append(copy.deepcopy(record))
        self._notify("put", "/", record)
        return FeedResponse(success=True, record=record)

    def update(self, fields: dict[str, Any]) -> FeedResponse:
        """Merge fields into the record, like a partial device update."""
        if self.fail_writes:
            return FeedResponse(success=False, error="write failure injected")

        merged = dict(self._record) if isinstance(self._record, dict) else {}
        merged.update(fields)
        self._record = merged
        self._notify("patch", "/", fields)
        return FeedResponse(success=True, record=self.record)

    def delete(self) -> FeedResponse:
        if self.fail_deletes:
            logger.error("Failed to delete record: delete failure injected")
            return FeedResponse(success=False, error="delete failure injected")

        self._record = None
        self.deletes += 1
        self._notify("put", "/", None)
        return FeedResponse(success=True)

    def subscribe(
        self,
        on_record: RecordCallback,
        on_error: ErrorCallback,
    ) -> FeedSubscription:
        subscription = FeedSubscription(on_record, on_error)
        self._subscriptions.append(subscription)
        # Like the database listener, deliver the current value first
        subscription.handle_event(_Event("put", "/", self.record))
        return subscription

    def emit_error(self, message: str = "connection lost") -> None:
        """Simulate the stream being cancelled by the server."""
        for subscription in list(self._subscriptions):
            subscription.handle_event(_Event("cancel", "/", message))
