#!/usr/bin/env python3
"""
CLI script for a one-off tracking lookup.

Usage: python run_track.py <tracking_number> [--max-attempts N] [--no-headless] [--artifacts]

Prints the tracking payload as JSON. Exit codes: 0 success, 1 no data after
all attempts, 2 invalid tracking number.
"""

import argparse
import asyncio
import dataclasses
import json
import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from api.services.tracking_service import TrackingService
from shared.config import get_config
from shared.logging import configure_logging
from worker.errors import ExhaustedError, ValidationError
from worker.orchestrator import RetryOrchestrator


async def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description="Scrape tracking data for one tracking number")
    parser.add_argument("tracking_number", help="Tracking number to look up")
    parser.add_argument("--max-attempts", type=int, default=None, help="Override SCRAPE_MAX_ATTEMPTS")
    parser.add_argument(
        "--no-headless",
        action="store_true",
        help="Show browser window (Chrome). Use for local debugging.",
    )
    parser.add_argument(
        "--artifacts",
        action="store_true",
        help="Write screenshot/HTML/console artifacts for every attempt.",
    )
    args = parser.parse_args()

    config = get_config()
    overrides: dict = {}
    if args.max_attempts is not None:
        overrides["max_attempts"] = max(1, args.max_attempts)
    if args.no_headless:
        overrides["headless"] = False
    if args.artifacts:
        overrides["artifacts_mode"] = "always"
    if overrides:
        config = dataclasses.replace(config, **overrides)

    configure_logging(
        level=logging.getLevelName(config.log_level.upper()),
        log_file=config.log_file,
        log_stdout=config.log_stdout,
    )

    service = TrackingService(RetryOrchestrator(config))
    try:
        payload = await service.track(args.tracking_number)
    except ValidationError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return 2
    except ExhaustedError as e:
        print(f"ERROR: {e.message} (reason={e.reason}, attempts={e.attempts})", file=sys.stderr)
        return 1

    print("\n" + "=" * 80)
    print("TRACKING RESULT")
    print("=" * 80)
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
