"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Accident location parsing and validation
- Feed event folding
- Location feed reconciliation
- Message formatting

All functions here are deterministic and have no I/O.
"""

from src.core.location import Location, parse_location, needs_seed, location_to_record
from src.core.snapshot import apply_feed_event
from src.core.reconciler import (
    AlertEvent,
    ConnectionStatus,
    IngestResult,
    ReconcilerState,
    ingest,
)
from src.core.errors import (
    DeletionError,
    FeedConnectionError,
    InitializationError,
    TrackerError,
)
from src.core.formatter import build_maps_url, format_alert_text, format_state_dict

__all__ = [
    # Location
    "Location",
    "parse_location",
    "needs_seed",
    "location_to_record",
    # Snapshot
    "apply_feed_event",
    # Reconciler
    "AlertEvent",
    "ConnectionStatus",
    "IngestResult",
    "ReconcilerState",
    "ingest",
    # Errors
    "TrackerError",
    "InitializationError",
    "FeedConnectionError",
    "DeletionError",
    # Formatter
    "build_maps_url",
    "format_alert_text",
    "format_state_dict",
]
