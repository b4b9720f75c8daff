#!/usr/bin/env python3
"""
Print what the event log has seen recently

Usage:
    # Last 48 hours, summary plus timeline
    python scripts/debug_events.py

    # Last week, counts only
    python scripts/debug_events.py --hours 168 --summary-only

    # Raw JSON
    python scripts/debug_events.py --json
"""

import sys
import os
import argparse
import json

# Add context-core to path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from services.context_graph import ContextGraph, debug_report
import logging

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def print_report(report: dict, summary_only: bool = False):
    summary = report["summary"]
    print(f"\n{'='*60}")
    print(f"Events in the last {summary['hours']} hours: {summary['total']}")
    print(f"{'='*60}")

    print("\nBy type:")
    for event_type, count in sorted(summary["by_type"].items(), key=lambda kv: -kv[1]):
        print(f"  {event_type:25} {count}")

    print("\nBy source:")
    for source, count in sorted(summary["by_source"].items(), key=lambda kv: -kv[1]):
        print(f"  {source:25} {count}")

    if summary_only:
        return

    print("\nTimeline:")
    for entry in report["timeline"]:
        print(f"  {entry['occurred_at']}  [{entry['source']}] {entry['summary']}")


def main():
    parser = argparse.ArgumentParser(description="Inspect recently observed events")
    parser.add_argument("--hours", type=int, default=48, help="Lookback window in hours (default 48)")
    parser.add_argument("--summary-only", action="store_true", help="Skip the timeline")
    parser.add_argument("--json", action="store_true", help="Print the raw report as JSON")
    args = parser.parse_args()

    graph = ContextGraph()
    report = debug_report(graph.recent_events(args.hours), args.hours)

    if args.json:
        print(json.dumps(report, indent=2))
    else:
        print_report(report, args.summary_only)


if __name__ == "__main__":
    main()
