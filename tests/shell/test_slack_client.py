"""Tests for Slack webhook client.

Uses the `responses` library to mock HTTP requests.
"""

import json

import pytest
import responses
import requests

from src.shell.slack_client import SlackClient


WEBHOOK_URL = "https://hooks.slack.com/services/T00/B00/XXX"


class TestSlackClientSendMessage:
    """Tests for SlackClient.send_message()."""

    @responses.activate
    def test_successful_send_returns_success(self):
        """200 from Slack returns SlackResponse with success=True."""
        responses.add(responses.POST, WEBHOOK_URL, body="ok", status=200)

        result = SlackClient(WEBHOOK_URL).send_message({"text": "hello"})

        assert result.success is True
        assert result.status_code == 200
        assert result.error is None

    @responses.activate
    def test_sends_json_payload(self):
        """Payload is posted as JSON."""
        responses.add(responses.POST, WEBHOOK_URL, body="ok", status=200)

        SlackClient(WEBHOOK_URL).send_message({"text": "🚨 alert"})

        request = responses.calls[0].request
        assert json.loads(request.body) == {"text": "🚨 alert"}

    @responses.activate
    def test_non_200_returns_failure(self):
        """Non-200 response returns failure with the body as error."""
        responses.add(responses.POST, WEBHOOK_URL, body="invalid_payload", status=400)

        result = SlackClient(WEBHOOK_URL).send_message({"text": "x"})

        assert result.success is False
        assert result.status_code == 400
        assert result.error == "invalid_payload"

    @responses.activate
    def test_timeout_returns_failure(self):
        """Timeouts are reported, not raised."""
        responses.add(responses.POST, WEBHOOK_URL, body=requests.Timeout())

        result = SlackClient(WEBHOOK_URL).send_message({"text": "x"})

        assert result.success is False
        assert result.status_code == 0
        assert result.error == "Request timed out"

    @responses.activate
    def test_connection_error_returns_failure(self):
        """Connection errors are reported, not raised."""
        responses.add(
            responses.POST,
            WEBHOOK_URL,
            body=requests.ConnectionError("refused"),
        )

        result = SlackClient(WEBHOOK_URL).send_message({"text": "x"})

        assert result.success is False
        assert "refused" in result.error
