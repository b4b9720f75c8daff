"""
Tests for EventWriter - fire-and-forget emission
"""

import pytest
from unittest.mock import Mock
from datetime import datetime, timezone

from models.event import EventEntities
from services.event_store import EventStore
from services.event_writer import EventWriter
from tests.fixtures.fake_supabase import FakeSupabaseClient


@pytest.fixture
def client():
    return FakeSupabaseClient()


@pytest.fixture
def writer(client):
    writer = EventWriter(EventStore(client=client), max_workers=2)
    yield writer
    writer.shutdown()


NOW = datetime(2026, 10, 1, 14, 0, tzinfo=timezone.utc)


class TestEmit:
    def test_emit_returns_future_resolving_to_id(self, writer, client):
        future = writer.emit_calendar_observed(
            {"id": "mtg-1", "title": "Acme Renewal Sync", "attendees": ["jane@acme.com"]},
            NOW,
        )

        event_id = future.result(timeout=5)
        row = client.rows()[0]
        assert row["id"] == event_id
        assert row["meeting_id"] == "mtg-1"
        assert row["person_ids"] == ["jane@acme.com"]

    def test_emit_does_not_wait_for_the_store(self):
        store = Mock()
        writer = EventWriter(store, max_workers=1)

        future = writer.emit({"type": "TaskCreated"})
        writer.shutdown()

        assert future.done()
        store.append.assert_called_once_with({"type": "TaskCreated"})

    def test_failed_write_resolves_to_none(self, writer, client):
        client.fail_inserts = True

        future = writer.emit_email_sent({"subject": "MSA", "to": ["jane@acme.com"]}, NOW)

        assert future.result(timeout=5) is None
        assert client.rows() == []

    def test_emit_batch(self, writer, client):
        events = [
            {"type": "EmailSent", "source": "email", "occurred_at": NOW},
            {"type": "TaskCreated", "source": "internal", "occurred_at": NOW},
        ]

        assert writer.emit_batch(events).result(timeout=5) is None
        assert len(client.rows()) == 2


class TestDerivedReferences:
    def test_email_thread_uses_thread_and_participants(self, writer, client):
        writer.emit_email_thread_observed(
            {"thread_id": "thr-9", "subject": "Pricing", "from": "jane@acme.com",
             "participants": ["jane@acme.com", "me@example.com"]},
            NOW,
        ).result(timeout=5)

        row = client.rows()[0]
        assert row["thread_id"] == "thr-9"
        assert row["person_ids"] == ["jane@acme.com", "me@example.com"]

    def test_task_priority_and_source_become_metadata(self, writer, client):
        writer.emit_task_created({"title": "Draft MSA", "priority": "high", "source": "transcript"}).result(timeout=5)

        assert client.rows()[0]["derived_metadata"] == {"priority": "high", "source": "transcript"}

    def test_follow_up_contact_is_the_person_reference(self, writer, client):
        writer.emit_follow_up_created({
            "contact_name": "Jane Doe",
            "contact_email": "jane@acme.com",
            "urgency": "high",
            "meeting_id": "mtg-1",
        }).result(timeout=5)

        row = client.rows()[0]
        assert row["person_ids"] == ["jane@acme.com"]
        assert row["meeting_id"] == "mtg-1"
        assert row["derived_metadata"] == {"urgency": "high", "contact_name": "Jane Doe"}

    def test_reminder_kind_recorded(self, writer, client):
        writer.emit_reminder_fired("meeting", {"message": "Acme sync in 15 minutes", "meeting_id": "mtg-1"}).result(timeout=5)

        row = client.rows()[0]
        assert row["type"] == "ReminderFired"
        assert row["meeting_id"] == "mtg-1"
        assert row["derived_metadata"] == {"reminder_kind": "meeting"}

    def test_transcript_entities_pass_through(self, writer, client):
        entities = EventEntities(transcript_id="tr-1", meeting_id="mtg-1", person_ids=["jane@acme.com"])

        writer.emit_transcript_observed({"id": "tr-1", "title": "Sync", "content": "notes"}, entities, NOW).result(timeout=5)

        row = client.rows()[0]
        assert row["transcript_id"] == "tr-1"
        assert row["meeting_id"] == "mtg-1"
        assert row["occurred_at"] == NOW.isoformat()

    def test_opportunity_references(self, writer, client):
        writer.emit_opportunity_observed(
            {"id": "opp-1", "account_id": "acct-1", "name": "Acme Renewal", "contact_emails": ["jane@acme.com"]},
            NOW,
        ).result(timeout=5)

        row = client.rows()[0]
        assert row["opportunity_id"] == "opp-1"
        assert row["account_id"] == "acct-1"
        assert row["person_ids"] == ["jane@acme.com"]
