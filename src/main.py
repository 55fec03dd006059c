"""Tracker Entry Points.

This module provides the long-running tracker (run from the command
line) and Cloud Function entry points for one-shot checks. They are
thin wrappers that load configuration and invoke the session.
"""

import argparse
import logging
import os
import threading
from typing import Any

import functions_framework
from flask import Request

from src.core.config import validate_config
from src.core.formatter import format_state_dict
from src.core.reconciler import ingest, initial_state
from src.shell.config_loader import get_config
from src.shell.memory_feed import InMemoryFeed
from src.tracker import build_feed, build_session


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@functions_framework.http
def tracker_status(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP Cloud Function: read the record once and report its state.

    Args:
        request: Flask request object (not used, but required by framework)

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    try:
        config = get_config()
        response = build_feed(config).read()

        if not response.success:
            return {
                "status": "error",
                "message": f"Failed to read record: {response.error}",
            }, 502

        result = ingest(initial_state(), response.record)
        return {
            "status": "success",
            **format_state_dict(result.state, result.coordinates_changed),
        }, 200

    except Exception as e:
        logger.exception("Unexpected error reading tracker status")
        return {
            "status": "error",
            "message": str(e),
        }, 500


@functions_framework.http
def tracker_bootstrap(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP Cloud Function: seed the record if absent or malformed.

    Suitable for Cloud Scheduler after a database reset.

    Args:
        request: Flask request object (not used, but required by framework)

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    logger.info("Running tracker bootstrap check")

    try:
        config = get_config()
        validation = validate_config(config)
        if not validation.valid:
            return {
                "status": "error",
                "message": "; ".join(e.message for e in validation.critical_errors),
            }, 400

        session = build_session(config)
        result = session.bootstrap()

        if not result.success:
            return {
                "status": "error",
                "message": f"Bootstrap failed: {result.error}",
            }, 502

        return {
            "status": "success",
            "seeded": result.seeded,
        }, 200

    except Exception as e:
        logger.exception("Unexpected error in tracker bootstrap")
        return {
            "status": "error",
            "message": str(e),
        }, 500


def run(argv: list[str] | None = None) -> int:
    """Run a tracker session until interrupted.

    Args:
        argv: Command-line arguments (sys.argv if None)

    Returns:
        Process exit code
    """
    parser = argparse.ArgumentParser(description="Track the live accident location")
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Use an in-memory feed instead of Firebase (local testing)",
    )
    parser.add_argument(
        "--no-bootstrap",
        action="store_true",
        help="Skip seeding a placeholder record at startup",
    )
    args = parser.parse_args(argv)

    config = get_config()
    logging.getLogger().setLevel(getattr(logging, config.log_level, logging.INFO))

    validation = validate_config(config)
    for warning in validation.warnings:
        logger.warning("Config %s: %s", warning.field, warning.message)
    # The in-memory feed needs no database URL
    critical = [
        error for error in validation.critical_errors
        if not args.memory or error.field != "database_url"
    ]
    if critical:
        for error in critical:
            logger.error("Config %s: %s", error.field, error.message)
        return 1

    feed = InMemoryFeed() if args.memory else None
    stop = threading.Event()

    with build_session(config, feed=feed) as session:
        if not args.no_bootstrap:
            session.bootstrap()
        logger.info("Tracking %s (Ctrl+C to stop)", config.record_path)
        try:
            stop.wait()
        except KeyboardInterrupt:
            logger.info("Interrupted")

    return 0


if __name__ == "__main__":
    raise SystemExit(run())
