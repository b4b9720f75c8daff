"""
Tests for EventStore - the append-only write contract

Run with:
    pytest tests/test_event_store.py -v
"""

import pytest
from unittest.mock import Mock
from datetime import datetime, timezone

from models.event import (
    CalendarObservedEvent,
    CalendarPayload,
    EventEntities,
    EventType,
    SourceSystem,
)
from services.event_store import EventStore, event_to_row, row_to_event
from tests.fixtures.fake_supabase import FakeSupabaseClient
from tests.fixtures.event_fixtures import calendar_event, email_thread, follow_up


@pytest.fixture
def client():
    return FakeSupabaseClient()


@pytest.fixture
def store(client):
    return EventStore(client=client)


class TestAppend:
    """Single-event writes"""

    def test_append_returns_store_assigned_id(self, store, client):
        event_id = store.append(calendar_event())

        assert event_id is not None
        rows = client.rows()
        assert len(rows) == 1
        assert rows[0]["id"] == event_id
        assert rows[0]["ingested_at"] is not None

    def test_append_flattens_entities_into_columns(self, store, client):
        store.append(calendar_event(meeting_id="mtg-42"))

        row = client.rows()[0]
        assert row["type"] == "CalendarObserved"
        assert row["source"] == "calendar"
        assert row["meeting_id"] == "mtg-42"
        assert row["person_ids"] == ["jane@acme.com", "bob@example.com"]
        assert row["payload"]["title"] == "Acme Renewal Sync"
        assert "id" not in event_to_row(CalendarObservedEvent(
            source=SourceSystem.CALENDAR, occurred_at=datetime.now(timezone.utc)
        ))

    def test_append_accepts_model_instances(self, store, client):
        event = CalendarObservedEvent(
            source=SourceSystem.CALENDAR,
            occurred_at=datetime(2026, 3, 2, 15, 0, tzinfo=timezone.utc),
            entities=EventEntities(meeting_id="mtg-1", person_ids=["a@x.com"]),
            payload=CalendarPayload(title="Kickoff"),
        )

        assert store.append(event) is not None
        assert client.rows()[0]["occurred_at"] == "2026-03-02T15:00:00+00:00"

    def test_email_sender_keeps_upstream_field_name(self, store, client):
        store.append(email_thread(sender="jane@acme.com"))

        assert client.rows()[0]["payload"]["from"] == "jane@acme.com"

    def test_malformed_event_is_rejected_without_raising(self, store, client):
        assert store.append({"type": "NotAType", "source": "email", "occurred_at": "2026-01-01T00:00:00Z"}) is None
        assert store.append({"type": "EmailSent", "source": "email"}) is None
        assert client.rows() == []

    def test_store_failure_is_logged_not_raised(self, store, client, caplog):
        client.fail_inserts = True

        assert store.append(calendar_event()) is None
        assert "Failed to append CalendarObserved event" in caplog.text

    def test_empty_insert_response_returns_none(self):
        client = Mock()
        client.table.return_value.insert.return_value.execute.return_value = Mock(data=[])

        assert EventStore(client=client).append(calendar_event()) is None

    def test_store_never_exposes_update_or_delete(self, store):
        assert not hasattr(store, "update")
        assert not hasattr(store, "delete")


class TestAppendOnly:
    """The visible event set only ever grows"""

    def test_event_set_is_monotonically_non_decreasing(self, store, client):
        seen_ids = set()
        for event in [calendar_event(), email_thread(), follow_up(), {"type": "Bogus"}, email_thread()]:
            before = {row["id"]: dict(row) for row in client.rows()}
            store.append(event)
            after = {row["id"]: row for row in client.rows()}

            assert set(before).issubset(after)
            for event_id, row in before.items():
                assert after[event_id] == row
            seen_ids |= set(after)

        assert len(seen_ids) == 4


class TestAppendBatch:
    """Batch writes are all or nothing"""

    def test_batch_success_returns_none(self, store, client):
        assert store.append_batch([calendar_event(), email_thread(), follow_up()]) is None
        assert len(client.rows()) == 3

    def test_empty_batch_is_noop(self, store, client):
        assert store.append_batch([]) is None
        assert client.rows() == []

    def test_malformed_event_rejects_whole_batch(self, store, client):
        error = store.append_batch([calendar_event(), {"type": "EmailSent"}, follow_up()])

        assert error is not None
        assert "index 1" in error
        assert client.rows() == []

    def test_store_failure_returns_message(self, store, client):
        client.fail_inserts = True

        assert store.append_batch([calendar_event()]) == "store unreachable"


class TestRowRoundTrip:
    def test_row_to_event_restores_typed_payload(self, store, client):
        store.append(follow_up(meeting_id="mtg-7"))

        event = row_to_event(client.rows()[0])

        assert event.type == EventType.FOLLOW_UP_CREATED
        assert event.payload.contact_name == "Jane Doe"
        assert event.entities.meeting_id == "mtg-7"
        assert event.derived_metadata == {"urgency": "high"}
        assert event.id is not None

    def test_naive_timestamps_are_treated_as_utc(self):
        event = CalendarObservedEvent(source=SourceSystem.CALENDAR, occurred_at=datetime(2026, 1, 1, 9, 0))

        assert event.occurred_at.tzinfo == timezone.utc
