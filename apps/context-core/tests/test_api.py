"""
Tests for the HTTP surface in main.py
"""

import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient

import main
from tests.fixtures.fake_supabase import FakeSupabaseClient
from tests.fixtures.event_fixtures import calendar_event, email_thread, follow_up, transcript, hours_ago


@pytest.fixture
def fake():
    fake = FakeSupabaseClient()
    with patch.object(main.store, "_client", fake):
        yield fake


@pytest.fixture
def api(fake):
    return TestClient(main.app)


def as_json(event):
    event = dict(event)
    event["occurred_at"] = event["occurred_at"].isoformat()
    return event


class TestHealth:
    def test_health(self, api):
        response = api.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestIngestion:
    def test_append_event(self, api, fake):
        response = api.post("/events", json=as_json(calendar_event()))

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "accepted"
        assert fake.rows()[0]["id"] == body["event_id"]

    def test_malformed_event_reported_not_raised(self, api, fake):
        response = api.post("/events", json={"type": "NotAType"})

        assert response.status_code == 200
        assert response.json()["status"] == "failed"
        assert fake.rows() == []

    def test_append_batch(self, api, fake):
        response = api.post("/events/batch", json=[as_json(calendar_event()), as_json(email_thread())])

        assert response.json() == {"status": "accepted", "count": 2}
        assert len(fake.rows()) == 2

    def test_batch_failure(self, api, fake):
        response = api.post("/events/batch", json=[as_json(calendar_event()), {"type": "EmailSent"}])

        assert response.json()["status"] == "failed"
        assert "index 1" in response.json()["error"]


class TestReads:
    def test_activity_with_type_filter(self, api, fake):
        main.store.append(calendar_event(occurred_at=hours_ago(2)))
        main.store.append(email_thread(occurred_at=hours_ago(1)))

        all_events = api.get("/activity").json()
        emails = api.get("/activity", params={"types": "EmailThreadObserved"}).json()

        assert [e["type"] for e in all_events] == ["EmailThreadObserved", "CalendarObserved"]
        assert [e["type"] for e in emails] == ["EmailThreadObserved"]

    def test_stats(self, api, fake):
        main.store.append(calendar_event())

        assert api.get("/stats").json()["by_type"] == {"CalendarObserved": 1}

    def test_person_views(self, api, fake):
        main.store.append(calendar_event(occurred_at=hours_ago(2)))
        main.store.append(email_thread(occurred_at=hours_ago(1)))

        timeline = api.get("/people/jane@acme.com/timeline").json()
        interactions = api.get("/people/jane@acme.com/interactions").json()
        pairs = api.get("/people/cooccurrences").json()

        assert [e["type"] for e in timeline] == ["CalendarObserved", "EmailThreadObserved"]
        assert interactions[0]["event_type"] == "EmailThreadObserved"
        assert pairs[0]["person_a"] == "bob@example.com"
        assert pairs[0]["person_b"] == "jane@acme.com"

    def test_store_outage_degrades_to_empty(self, api, fake):
        fake.fail_when = lambda query: True

        assert api.get("/activity").json() == []
        assert api.get("/today").json() == []
        assert api.get("/stats").json()["total"] == 0


class TestBriefs:
    def test_meeting_brief(self, api, fake):
        main.store.append(calendar_event(meeting_id="mtg-1"))
        main.store.append(follow_up())

        response = api.get("/meetings/mtg-1/brief")

        assert response.status_code == 200
        body = response.json()
        assert body["meeting"]["meeting_id"] == "mtg-1"
        assert body["open_follow_ups"][0]["contact_name"] == "Jane Doe"

    def test_nothing_to_brief_is_404(self, api, fake):
        response = api.get("/meetings/unknown/brief")

        assert response.status_code == 404
        assert "Nothing to brief" in response.json()["detail"]

    def test_transcript_insights(self, api, fake):
        main.store.append(transcript(transcript_id="tr-1", meeting_id="mtg-1", opportunity_id="opp-1"))

        body = api.get("/transcripts/tr-1/insights").json()

        assert body["extraction_stats"]["total_actions"] == 2
        assert body["extracted_actions"][0]["match_type"] == "commitment"
        assert body["extracted_actions"][0]["mentioned_time"] == "Friday"

    def test_meeting_insights(self, api, fake):
        main.store.append(transcript(transcript_id="tr-1", meeting_id="mtg-1", opportunity_id="opp-1"))

        assert api.get("/meetings/mtg-1/insights").json()["transcript_id"] == "tr-1"
        assert api.get("/meetings/mtg-2/insights").status_code == 404
        assert api.get("/transcripts/tr-404/insights").status_code == 404


class TestTranscriptWebhook:
    BODY = {
        "id": "tr-hook",
        "title": "Acme Renewal Sync",
        "content": "I'll send the MSA by Friday.",
        "attendees": "jane@acme.com",
    }

    def test_status(self, api):
        assert api.get("/webhooks/transcript").json()["status"] == "active"

    def test_webhook_links_meeting(self, api, fake):
        main.store.append(calendar_event(meeting_id="mtg-acme", occurred_at=hours_ago(1)))

        with patch.object(main.intake, "writer") as writer:
            response = api.post("/webhooks/transcript", json=self.BODY)

        body = response.json()
        assert body["success"] is True
        assert body["id"] == "tr-hook"
        assert body["linked"]["meeting_id"] == "mtg-acme"
        writer.emit_transcript_observed.assert_called_once()

    def test_webhook_secret_required_when_configured(self, api, fake):
        with patch.object(main.settings, "TRANSCRIPT_WEBHOOK_SECRET", "s3cret"), \
                patch.object(main.intake, "writer"):
            assert api.post("/webhooks/transcript", json=self.BODY).status_code == 401
            assert api.post(
                "/webhooks/transcript", json=self.BODY, headers={"Authorization": "Bearer wrong"}
            ).status_code == 401
            assert api.post(
                "/webhooks/transcript", json=self.BODY, headers={"Authorization": "Bearer s3cret"}
            ).status_code == 200


class TestDebugEvents:
    def test_open_in_development(self, api, fake):
        main.store.append(calendar_event(occurred_at=hours_ago(3)))

        with patch.object(main.settings, "ENVIRONMENT", "development"):
            body = api.get("/debug/events", params={"hours": 24}).json()

        assert body["summary"]["total"] == 1
        assert body["summary"]["hours"] == 24
        assert body["timeline"][0]["type"] == "CalendarObserved"

    def test_api_key_required_outside_development(self, api, fake):
        with patch.object(main.settings, "ENVIRONMENT", "production"), \
                patch.object(main.settings, "DEBUG_API_KEY", "debug-key"):
            assert api.get("/debug/events").status_code == 401
            assert api.get("/debug/events", headers={"X-API-Key": "nope"}).status_code == 401
            assert api.get("/debug/events", headers={"X-API-Key": "debug-key"}).status_code == 200
