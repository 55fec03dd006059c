"""Tests for the command-line entry point."""

from unittest.mock import patch

from src.core.config import Config
from src.main import run


class TestRunValidation:
    """run() exits before starting a session on bad configuration."""

    def test_memory_run_rejects_invalid_history_size(self):
        with patch("src.main.get_config", return_value=Config(alert_history_size=-1)), \
                patch("src.main.build_session") as mock_build:
            assert run(["--memory"]) == 1

        mock_build.assert_not_called()

    def test_firebase_run_requires_database_url(self):
        with patch("src.main.get_config", return_value=Config()), \
                patch("src.main.build_session") as mock_build:
            assert run([]) == 1

        mock_build.assert_not_called()
