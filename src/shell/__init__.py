"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- Firebase Realtime Database feed client (database)
- Slack webhook client (HTTP)
- Presentation sinks (log, Slack, dashboard)
- Configuration loading (environment/files/Secret Manager)

Keep this layer thin and simple. All business logic should be in core.
"""

from src.shell.feed_client import RealtimeFeedClient, FeedConfig, FeedResponse
from src.shell.memory_feed import InMemoryFeed
from src.shell.slack_client import SlackClient
from src.shell.sinks import (
    PresentationSink,
    LogSink,
    SlackSink,
    DashboardSink,
    CompositeSink,
)
from src.shell.config_loader import load_config, Config

__all__ = [
    "RealtimeFeedClient",
    "FeedConfig",
    "FeedResponse",
    "InMemoryFeed",
    "SlackClient",
    "PresentationSink",
    "LogSink",
    "SlackSink",
    "DashboardSink",
    "CompositeSink",
    "load_config",
    "Config",
]
