"""Slack Webhook Client - Imperative Shell.

Posts tracker alerts and errors to one Slack incoming webhook. Payloads
are built by the core formatter; this module only does the HTTP call.
"""

import logging
from dataclasses import dataclass
from typing import Any

import requests


logger = logging.getLogger(__name__)


# Seconds to wait for the webhook before giving up
DEFAULT_TIMEOUT = 10


@dataclass
class SlackResponse:
    """Outcome of one webhook post.

    status_code is 0 when no HTTP response was received.
    """
    success: bool
    status_code: int
    error: str | None = None


class SlackClient:
    """Webhook poster used by the Slack sink."""

    def __init__(self, webhook_url: str, timeout: int = DEFAULT_TIMEOUT) -> None:
        self.webhook_url = webhook_url
        self.timeout = timeout

    def _failed(self, error: str, status_code: int = 0) -> SlackResponse:
        logger.error("Slack notification not delivered: %s", error)
        return SlackResponse(success=False, status_code=status_code, error=error)

    def send_message(self, payload: dict[str, Any]) -> SlackResponse:
        """Post a formatted payload. Network failures are returned, not raised."""
        try:
            response = requests.post(self.webhook_url, json=payload, timeout=self.timeout)
        except requests.Timeout:
            return self._failed("Request timed out")
        except requests.RequestException as e:
            return self._failed(str(e))

        if response.status_code != 200:
            return self._failed(response.text, response.status_code)

        logger.info("Slack notification delivered")
        return SlackResponse(success=True, status_code=response.status_code)
