from fastapi import FastAPI, HTTPException, Header, Body
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from config import settings
from services.event_store import EventStore
from services.event_writer import EventWriter
from services.context_graph import ContextGraph, debug_report
from services.transcript_intake import TranscriptIntake, TranscriptNote
from processors.transcript_linker import TranscriptLinker
from engines.pre_meeting_brief import PreMeetingBriefGenerator
from engines.post_meeting_insights import PostMeetingInsightsGenerator
import logging

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Context Core",
    version="0.1.0",
    description="Append-only event log with timelines, meeting briefs and post-meeting action extraction"
)

# One store handle shared by every reader and the writer
store = EventStore()
graph = ContextGraph(store)
writer = EventWriter(store)
linker = TranscriptLinker(graph)
intake = TranscriptIntake(linker, writer)
pre_meeting = PreMeetingBriefGenerator(graph)
post_meeting = PostMeetingInsightsGenerator(graph, linker)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "service": "Context Core"
    }


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting Context Core ({settings.ENVIRONMENT})")


@app.on_event("shutdown")
async def shutdown_event():
    """Flush queued event writes before exiting"""
    logger.info("Shutting down Context Core, waiting for pending event writes")
    writer.shutdown(wait=True)


# Event ingestion

@app.post("/events")
async def append_event(event: Dict[str, Any] = Body(...)):
    """Append a single event

    Failures are reported in the response body, never raised.

    Returns:
        {"status": "accepted", "event_id": str} or {"status": "failed", "error": str}
    """
    event_id = store.append(event)
    if event_id is None:
        return {"status": "failed", "error": "Event rejected or store unavailable"}
    return {"status": "accepted", "event_id": event_id}


@app.post("/events/batch")
async def append_events(events: List[Dict[str, Any]] = Body(...)):
    """Append a batch of events in one write (all or nothing)"""
    error = store.append_batch(events)
    if error:
        return {"status": "failed", "error": error}
    return {"status": "accepted", "count": len(events)}


# Timelines and feeds

@app.get("/activity")
async def activity_feed(limit: int = settings.DEFAULT_FEED_LIMIT, types: Optional[str] = None):
    """Global activity feed, newest first

    Args:
        limit: Maximum number of events
        types: Optional comma-separated event types, e.g. "EmailSent,TaskCreated"
    """
    type_filter = [t.strip() for t in types.split(",") if t.strip()] if types else None
    return graph.activity_feed(limit=limit, types=type_filter)


@app.get("/stats")
async def event_stats(days_back: int = settings.STATS_LOOKBACK_DAYS):
    return graph.event_stats(days_back)


@app.get("/today")
async def todays_events():
    return graph.todays_events()


@app.get("/people/cooccurrences")
async def person_cooccurrences(limit: int = 50):
    """People who frequently appear in the same events"""
    return graph.person_cooccurrences(limit=limit)


@app.get("/people/{person_id}/timeline")
async def person_timeline(person_id: str, limit: int = settings.DEFAULT_TIMELINE_LIMIT):
    return graph.timeline_for_person(person_id, limit)


@app.get("/people/{person_id}/interactions")
async def person_interactions(person_id: str, days_back: int = settings.INTERACTION_LOOKBACK_DAYS):
    return graph.recent_interactions(person_id, days_back)


# Briefs

@app.get("/meetings/{meeting_id}/brief")
async def meeting_brief(meeting_id: str, days_back: int = 30):
    """Pre-meeting brief: attendees, recent interactions, open follow-ups, threads"""
    brief = pre_meeting.generate(meeting_id, days_back)
    if brief is None:
        raise HTTPException(status_code=404, detail=f"Nothing to brief: no calendar event for meeting {meeting_id}")
    return brief


@app.get("/meetings/{meeting_id}/insights")
async def meeting_insights(meeting_id: str):
    insights = post_meeting.generate_for_meeting(meeting_id)
    if insights is None:
        raise HTTPException(status_code=404, detail=f"No transcript found for meeting {meeting_id}")
    return insights


@app.get("/transcripts/{transcript_id}/insights")
async def transcript_insights(transcript_id: str):
    """Post-meeting insights: extracted actions and related context"""
    insights = post_meeting.generate_for_transcript(transcript_id)
    if insights is None:
        raise HTTPException(status_code=404, detail=f"No transcript found for ID {transcript_id}")
    return insights


# Inbound transcript webhook

@app.get("/webhooks/transcript")
async def transcript_webhook_status():
    """Lets webhook senders verify the endpoint"""
    return {
        "status": "active",
        "message": "Transcript webhook endpoint is ready",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.post("/webhooks/transcript")
async def transcript_webhook(
    body: Dict[str, Any] = Body(...),
    authorization: str = Header(None),
):
    """Receive meeting notes, link them to a meeting/opportunity, emit TranscriptObserved

    Requires `Authorization: Bearer <TRANSCRIPT_WEBHOOK_SECRET>` when a secret is configured.
    """
    if settings.TRANSCRIPT_WEBHOOK_SECRET and authorization != f"Bearer {settings.TRANSCRIPT_WEBHOOK_SECRET}":
        logger.warning("Unauthorized transcript webhook request")
        raise HTTPException(status_code=401, detail="Unauthorized")

    note = TranscriptNote.from_webhook(body)
    logger.info(f"Transcript webhook received note {note.id} ('{note.title}')")
    result = intake.ingest(note)

    return {
        "success": True,
        "message": "Transcript event emitted",
        "id": note.id,
        "linked": {
            "meeting_id": result.entities.meeting_id,
            "opportunity_id": result.entities.opportunity_id,
        }
    }


# Debug

@app.get("/debug/events")
async def debug_events(hours: int = 48, x_api_key: str = Header(None, alias="X-API-Key")):
    """Compact view of recent events for verifying ingestion

    Open in development; otherwise requires X-API-Key == DEBUG_API_KEY.
    """
    is_dev = settings.ENVIRONMENT == "development"
    if not is_dev and (not settings.DEBUG_API_KEY or x_api_key != settings.DEBUG_API_KEY):
        logger.warning(f"Unauthorized debug request with key: {x_api_key[:8] if x_api_key else 'None'}...")
        raise HTTPException(status_code=401, detail="Unauthorized")

    return debug_report(graph.recent_events(hours), hours)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
