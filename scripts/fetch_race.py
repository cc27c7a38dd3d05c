#!/usr/bin/env python3
"""
Fetch and decode one snapshot of a live-timing.com race.

Usage:
    python scripts/fetch_race.py 299423
    python scripts/fetch_race.py 299423 --json       # Full JSON output
    python scripts/fetch_race.py --file feed.txt     # Decode a saved feed
    python scripts/fetch_race.py 299423 --raw        # Also print raw sample
"""

import argparse
import json
from pathlib import Path

# Add parent to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.feed_service import decode_feed
from core.race_feed import RaceFeedPipeline
from core.results import RaceFeedResult
from core.durations import RunResult


def describe_run(run: RunResult) -> str:
    """Short text for one run slot."""
    if run.is_duration:
        return f"{run.milliseconds / 1000:.2f}s"
    return run.status_label or "-"


def print_result(result: RaceFeedResult, show_raw: bool = False) -> None:
    print(f"{result.race_name} [{result.status.value}] {result.message}")
    if result.dialect:
        print(f"Dialect: {result.dialect}")

    for racer in result.racers:
        total = f"{racer.total_time / 1000:.2f}s" if racer.total_time is not None else "-"
        print(
            f"  #{racer.bib_number:<4} {racer.name:<28} {racer.club:<10} {racer.race_class:<8} "
            f"R1 {describe_run(racer.run1):<10} R2 {describe_run(racer.run2):<10} Total {total}"
        )

    if show_raw and result.raw_sample:
        print("\nRaw data sample:")
        print(result.raw_sample)


def main():
    parser = argparse.ArgumentParser(description="Fetch and decode a live timing race feed")
    parser.add_argument("race_id", nargs="?", help="live-timing.com race id")
    parser.add_argument("--file", type=str, help="Decode a saved feed file instead of fetching")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--raw", action="store_true", help="Print the first part of the raw feed")
    args = parser.parse_args()

    if not args.race_id and not args.file:
        parser.error("race_id or --file is required")

    if args.file:
        text = Path(args.file).read_text(encoding="utf-8")
        result = RaceFeedResult.from_snapshot(args.file, decode_feed(text), raw_text=text)
    else:
        result = RaceFeedPipeline().get_race(args.race_id)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_result(result, show_raw=args.raw)

    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
