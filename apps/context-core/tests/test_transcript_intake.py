"""
Tests for transcript intake - webhook normalisation, linking and emission
"""

import pytest
from unittest.mock import Mock

from models.event import EventEntities
from models.link import LinkedMeeting, LinkedOpportunity
from processors.transcript_linker import TranscriptLinker
from services.context_graph import ContextGraph
from services.event_store import EventStore
from services.event_writer import EventWriter
from services.transcript_intake import (
    TranscriptIntake,
    TranscriptNote,
    parse_action_items,
    parse_attendees,
)
from tests.fixtures.fake_supabase import FakeSupabaseClient
from tests.fixtures.event_fixtures import calendar_event, opportunity, hours_ago


class TestParsing:
    def test_action_items_from_list_or_string(self):
        assert parse_action_items(["Send MSA", "Book call"]) == ["Send MSA", "Book call"]
        assert parse_action_items("- Send MSA\n* Book call\r\n\n• Share deck") == ["Send MSA", "Book call", "Share deck"]
        assert parse_action_items(None) == []
        assert parse_action_items(42) == []

    def test_attendees_from_list_or_string(self):
        assert parse_attendees("jane@acme.com, bob@example.com;carol@example.com\n") == [
            "jane@acme.com", "bob@example.com", "carol@example.com",
        ]
        assert parse_attendees(["jane@acme.com"]) == ["jane@acme.com"]
        assert parse_attendees("") == []

    def test_from_webhook_field_variants(self):
        note = TranscriptNote.from_webhook({
            "granola_id": "g-123",
            "meeting_title": "Acme Renewal Sync",
            "notes": "I'll send the MSA by Friday.",
            "ai_summary": "Renewal discussion",
            "actionItems": "- Review pricing",
            "participants": "jane@acme.com, bob@example.com",
            "date": "2026-10-14T15:00:00Z",
            "duration": "45",
        })

        assert note.id == "g-123"
        assert note.title == "Acme Renewal Sync"
        assert note.content == "I'll send the MSA by Friday."
        assert note.summary == "Renewal discussion"
        assert note.action_items == ["Review pricing"]
        assert note.attendees == ["jane@acme.com", "bob@example.com"]
        assert note.meeting_date == "2026-10-14T15:00:00Z"
        assert note.duration_minutes == 45
        assert note.tags == []

    def test_from_webhook_defaults(self):
        note = TranscriptNote.from_webhook({"summary": "Short chat", "duration": "about an hour"})

        assert note.id.startswith("transcript_")
        assert note.title == "Untitled Meeting"
        assert note.content == "Short chat"
        assert note.duration_minutes is None


class TestIngest:
    @pytest.fixture
    def client(self):
        return FakeSupabaseClient()

    @pytest.fixture
    def store(self, client):
        return EventStore(client=client)

    def test_ingest_links_and_emits(self, store, client):
        store.append(calendar_event(meeting_id="mtg-acme", title="Acme Renewal Sync", occurred_at=hours_ago(2)))
        store.append(opportunity(opportunity_id="opp-acme", account_id="acct-acme"))
        writer = EventWriter(store, max_workers=1)
        intake = TranscriptIntake(TranscriptLinker(ContextGraph(store)), writer)

        note = TranscriptNote(
            id="tr-1",
            title="ACME renewal sync",
            content="I'll send the MSA by Friday.",
            attendees=["jane@acme.com"],
            meeting_date=hours_ago(1).isoformat(),
        )
        result = intake.ingest(note)
        writer.shutdown(wait=True)

        assert result.meeting.meeting_id == "mtg-acme"
        assert result.opportunity.opportunity_id == "opp-acme"
        assert result.entities.account_id == "acct-acme"

        emitted = [r for r in client.rows() if r["type"] == "TranscriptObserved"]
        assert len(emitted) == 1
        assert emitted[0]["transcript_id"] == "tr-1"
        assert emitted[0]["meeting_id"] == "mtg-acme"
        assert emitted[0]["opportunity_id"] == "opp-acme"
        assert emitted[0]["payload"]["title"] == "ACME renewal sync"

    def test_unlinked_transcript_still_emitted(self):
        linker = Mock()
        linker.find_linked_meeting.return_value = None
        linker.find_linked_opportunity.return_value = None
        writer = Mock()

        result = TranscriptIntake(linker, writer).ingest(TranscriptNote(id="tr-2", attendees=["x@y.com"]))

        assert result.meeting is None
        assert result.entities == EventEntities(transcript_id="tr-2", person_ids=["x@y.com"])
        writer.emit_transcript_observed.assert_called_once()

    def test_linker_error_degrades_to_unlinked(self, caplog):
        linker = Mock()
        linker.find_linked_meeting.side_effect = RuntimeError("boom")
        writer = Mock()

        result = TranscriptIntake(linker, writer).ingest(TranscriptNote(id="tr-3"))

        assert result.meeting is None
        assert result.opportunity is None
        assert "Linking failed for transcript tr-3" in caplog.text
        _, entities = writer.emit_transcript_observed.call_args[0]
        assert entities.meeting_id is None

    def test_linked_ids_flow_into_entities(self):
        linker = Mock()
        linker.find_linked_meeting.return_value = LinkedMeeting(
            meeting_id="mtg-1", start_time=hours_ago(1), match_reason="title"
        )
        linker.find_linked_opportunity.return_value = LinkedOpportunity(opportunity_id="opp-1", account_id="acct-1")

        result = TranscriptIntake(linker, Mock()).ingest(TranscriptNote(id="tr-4"))

        assert (result.entities.meeting_id, result.entities.opportunity_id, result.entities.account_id) == (
            "mtg-1", "opp-1", "acct-1",
        )
