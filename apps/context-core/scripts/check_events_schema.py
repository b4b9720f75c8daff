#!/usr/bin/env python3
"""
Check that the events table exists and has the columns the store writes
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from services.event_store import EventStore, ENTITY_COLUMNS
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

EXPECTED_COLUMNS = (
    "id",
    "type",
    "source",
    "occurred_at",
    "ingested_at",
    "person_ids",
    "person_count",
    "payload",
    "derived_metadata",
) + ENTITY_COLUMNS


def missing_columns(store: EventStore) -> list:
    """Select each expected column on its own; PostgREST rejects unknown ones"""
    missing = []
    for column in EXPECTED_COLUMNS:
        try:
            store.select(column).limit(1).execute()
        except Exception as e:
            logger.debug(f"Column check failed for {column}: {e}")
            missing.append(column)
    return missing


def main() -> int:
    store = EventStore()

    print("\n" + "=" * 70)
    print(f"Events table: {store.table}")
    print("=" * 70)

    try:
        response = store.select("id").limit(1).execute()
    except Exception as e:
        print(f"\n❌ Table not reachable: {e}")
        print("   Apply docs/migrations/001_create_events.sql and check SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY")
        return 1

    print(f"\n✅ Table reachable ({len(response.data or [])} sample row(s))")

    missing = missing_columns(store)
    if missing:
        print("\n❌ Missing columns:")
        for column in missing:
            print(f"  - {column}")
        return 1

    print(f"✅ All {len(EXPECTED_COLUMNS)} expected columns present")
    print("\n" + "=" * 70)
    return 0


if __name__ == "__main__":
    sys.exit(main())
