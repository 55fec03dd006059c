"""Tracker error kinds.

These are handed to presentation sinks as values; the session never
raises them. Each carries a short title and a user-facing detail line.
"""


class TrackerError(Exception):
    """Base class for errors surfaced to presentation sinks."""

    title = "Tracker Error"
    default_detail = "An unexpected error occurred."

    def __init__(self, detail: str | None = None, cause: str | None = None) -> None:
        self.detail = detail or self.default_detail
        self.cause = cause
        super().__init__(self.detail)


class InitializationError(TrackerError):
    """Bootstrap could not read or seed the feed record."""

    title = "Data Init Error"
    default_detail = "Failed to initialize data. Please check database rules."


class FeedConnectionError(TrackerError):
    """The feed subscription was lost."""

    title = "Connection Error"
    default_detail = (
        "Lost connection to emergency database. Attempting to reconnect..."
    )


class DeletionError(TrackerError):
    """Clearing the feed record failed."""

    title = "Delete Failed"
    default_detail = "Unable to remove location data. Please try again."
