"""Feed event folding - Pure functions.

The realtime database streams put/patch events relative to the
subscribed path instead of whole snapshots. This module folds those
events into the whole-record snapshot the reconciler consumes.
All functions are pure with no side effects.
"""

import copy
from typing import Any


PUT = "put"
PATCH = "patch"


def _split_path(path: str | None) -> list[str]:
    """Split an event path like '/lat' into its segments."""
    if not path:
        return []
    return [segment for segment in path.split("/") if segment]


def _normalize(snapshot: Any) -> Any:
    """Fold empty mappings to None (the database has no empty nodes)."""
    if isinstance(snapshot, dict) and not snapshot:
        return None
    return snapshot


def _merge(target: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Shallow-merge updates into target, removing keys set to None."""
    merged = dict(target)
    for key, value in updates.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = value
    return merged


def _set_at(root: Any, segments: list[str], value: Any, patch: bool) -> Any:
    """Return a copy of root with value written at the nested path."""
    if not segments:
        if patch and isinstance(value, dict):
            base = root if isinstance(root, dict) else {}
            return _normalize(_merge(base, value))
        return _normalize(copy.deepcopy(value))

    node = dict(root) if isinstance(root, dict) else {}
    head, rest = segments[0], segments[1:]
    child = _set_at(node.get(head), rest, value, patch)

    if child is None:
        node.pop(head, None)
    else:
        node[head] = child
    return _normalize(node)


def apply_feed_event(
    snapshot: Any,
    event_type: str,
    path: str | None,
    data: Any,
) -> Any:
    """Fold one streaming event into the last known snapshot.

    Pure function.

    Args:
        snapshot: Last known whole-record snapshot (None if absent)
        event_type: 'put' or 'patch'; anything else is ignored
        path: Event path relative to the subscribed record ('/' for root)
        data: Event payload

    Returns:
        New whole-record snapshot, or None if the record is now absent
    """
    if event_type not in (PUT, PATCH):
        return snapshot

    segments = _split_path(path)
    return _set_at(snapshot, segments, data, patch=event_type == PATCH)
