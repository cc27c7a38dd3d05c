#!/usr/bin/env python3
"""
Poll a live-timing.com race on a fixed interval.

Each poll fetches a full snapshot and decodes it from scratch; nothing is
carried over between polls. Stop with Ctrl-C.

Usage:
    python scripts/watch_race.py 299423
    python scripts/watch_race.py 299423 --interval 10
"""

import argparse
import time
from pathlib import Path

# Add parent to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.logging import get_logger
from core.race_feed import RaceFeedPipeline

logger = get_logger("ski_timing.watch")

DEFAULT_INTERVAL = 30.0  # seconds between polls


def poll_forever(race_id: str, interval: float) -> None:
    """Fetch + decode every `interval` seconds, one request at a time."""
    pipeline = RaceFeedPipeline()

    while True:
        result = pipeline.get_race(race_id)
        finished = sum(1 for r in result.racers if r.total_time is not None)
        on_course = sum(
            1 for r in result.racers if r.run1.is_on_course or r.run2.is_on_course
        )
        logger.info(
            f"{result.race_name}: {result.message}",
            extra={
                "status": result.status.value,
                "racers": len(result.racers),
                "finished": finished,
                "on_course": on_course,
            },
        )
        time.sleep(interval)


def main():
    parser = argparse.ArgumentParser(description="Poll a live timing race feed")
    parser.add_argument("race_id", help="live-timing.com race id")
    parser.add_argument(
        "--interval",
        type=float,
        default=DEFAULT_INTERVAL,
        help=f"Seconds between polls (default {DEFAULT_INTERVAL:g})",
    )
    args = parser.parse_args()

    if args.interval <= 0:
        parser.error("--interval must be positive")

    print(f"Watching race {args.race_id} every {args.interval:g}s. Ctrl-C to stop.")
    try:
        poll_forever(args.race_id, args.interval)
    except KeyboardInterrupt:
        print("\nStopped.")


if __name__ == "__main__":
    main()
