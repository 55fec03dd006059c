#!/usr/bin/env python3
"""Write a test accident location to the live feed.

⚠️  WARNING: This writes to the production record!
    Every running tracker will raise an EMERGENCY ALERT and post to
    the configured Slack channel.

This script plays the part of the in-vehicle device: it writes a record
in the device's shape (coordinates as strings, millisecond timestamp).

Usage:
    # Dry run (preview only, no writes)
    python scripts/push_test_location.py --dry-run

    # Write a location
    python scripts/push_test_location.py --latitude 19.1 --longitude 72.9

    # Clear the record instead
    python scripts/push_test_location.py --clear

Environment:
    CONFIG_PATH: Path to config file (default: config/config.yaml)
    FIREBASE_DATABASE_URL: Realtime Database URL (when no config file)
"""

import argparse
import json
import logging
import os
import sys
import time

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.formatter import format_alert_text
from src.core.location import Location, location_to_record, parse_location
from src.shell.config_loader import get_config
from src.tracker import build_feed

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Write a test accident location to the live feed",
        epilog="⚠️  WARNING: This triggers REAL alerts! Use --dry-run first.",
    )
    parser.add_argument(
        "--latitude",
        type=float,
        default=19.09719,
        help="Accident latitude (default: 19.09719)",
    )
    parser.add_argument(
        "--longitude",
        type=float,
        default=72.88258,
        help="Accident longitude (default: 72.88258)",
    )
    parser.add_argument(
        "--timestamp",
        type=int,
        default=None,
        help="Timestamp in milliseconds (default: now)",
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Delete the record instead of writing one",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print what would be written without writing",
    )
    args = parser.parse_args()

    config = get_config()
    if not config.database_url:
        logger.error("No Firebase database URL configured")
        return 1

    feed = build_feed(config)

    if args.clear:
        if args.dry_run:
            logger.info("[DRY RUN] Would delete %s", config.record_path)
            return 0
        response = feed.delete()
        if not response.success:
            logger.error("  ✗ Failed to clear record: %s", response.error)
            return 1
        logger.info("  ✓ Record cleared")
        return 0

    location = Location(
        latitude=args.latitude,
        longitude=args.longitude,
        observed_at=args.timestamp if args.timestamp is not None else int(time.time() * 1000),
    )
    record = location_to_record(location)

    # Check the record round-trips before sending it anywhere
    if parse_location(record) != location:
        logger.error("Record would not validate: %s", record)
        return 1

    print(json.dumps(record, indent=2))
    print(format_alert_text(location))

    if args.dry_run:
        logger.info("[DRY RUN] Would write to %s", config.record_path)
        return 0

    response = feed.write(record)
    if not response.success:
        logger.error("  ✗ Failed to write record: %s", response.error)
        return 1

    logger.info("  ✓ Test location written to %s", config.record_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
