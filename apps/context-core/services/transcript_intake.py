"""
Transcript intake: turns an inbound meeting-notes webhook into a linked
TranscriptObserved event
"""

import re
import time
from typing import Any, Dict, List, Optional
from pydantic import BaseModel
from models.event import EventEntities
from models.link import LinkedMeeting, LinkedOpportunity
from processors.transcript_linker import TranscriptLinker, parse_time_hint
from services.event_writer import EventWriter
from utils.text_cleaner import TextCleaner
import logging

logger = logging.getLogger(__name__)


def parse_action_items(items: Any) -> List[str]:
    """Accept a list, or a newline/bullet separated string"""
    if not items:
        return []
    if isinstance(items, list):
        return [str(item) for item in items if item is not None]
    if isinstance(items, str):
        lines = (TextCleaner.strip_bullet(line) for line in re.split(r"[\r\n]+", items))
        return [line for line in lines if line]
    return []


def parse_attendees(attendees: Any) -> List[str]:
    """Accept a list, or a comma/semicolon/newline separated string"""
    if not attendees:
        return []
    if isinstance(attendees, list):
        return [str(a) for a in attendees if a is not None]
    if isinstance(attendees, str):
        return [a.strip() for a in re.split(r"[,;\n]+", attendees) if a.strip()]
    return []


def _as_minutes(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None and value != "" else None
    except (TypeError, ValueError):
        return None


class TranscriptNote(BaseModel):
    id: str
    title: str = "Untitled Meeting"
    content: str = ""
    summary: Optional[str] = None
    action_items: List[str] = []
    attendees: List[str] = []
    meeting_date: Optional[str] = None
    duration_minutes: Optional[int] = None
    tags: List[str] = []

    @classmethod
    def from_webhook(cls, body: Dict[str, Any]) -> "TranscriptNote":
        """Normalize the field-name variants different senders use"""
        return cls(
            id=str(body.get("id") or body.get("granola_id") or f"transcript_{int(time.time() * 1000)}"),
            title=body.get("title") or body.get("meeting_title") or "Untitled Meeting",
            content=body.get("content") or body.get("notes") or body.get("summary") or "",
            summary=body.get("summary") or body.get("ai_summary"),
            action_items=parse_action_items(body.get("action_items") or body.get("actionItems")),
            attendees=parse_attendees(body.get("attendees") or body.get("participants")),
            meeting_date=body.get("meeting_date") or body.get("date") or body.get("created_at"),
            duration_minutes=_as_minutes(body.get("duration_minutes") or body.get("duration")),
            tags=[str(tag) for tag in body.get("tags") or []],
        )


class IntakeResult(BaseModel):
    transcript_id: str
    meeting: Optional[LinkedMeeting] = None
    opportunity: Optional[LinkedOpportunity] = None
    entities: EventEntities


class TranscriptIntake:
    """Links a transcript to its meeting and opportunity, then emits the event"""

    def __init__(self, linker: Optional[TranscriptLinker] = None, writer: Optional[EventWriter] = None):
        self.linker = linker or TranscriptLinker()
        self.writer = writer or EventWriter()

    def ingest(self, note: TranscriptNote) -> IntakeResult:
        meeting, opportunity = None, None
        try:
            meeting = self.linker.find_linked_meeting(note.title, note.meeting_date, note.attendees)
            opportunity = self.linker.find_linked_opportunity(note.attendees)
        except Exception as e:
            logger.error(f"Linking failed for transcript {note.id}, emitting unlinked: {e}", exc_info=True)

        entities = EventEntities(
            transcript_id=note.id,
            meeting_id=meeting.meeting_id if meeting else None,
            person_ids=note.attendees,
            account_id=opportunity.account_id if opportunity else None,
            opportunity_id=opportunity.opportunity_id if opportunity else None,
        )

        self.writer.emit_transcript_observed(
            note.model_dump(exclude_none=True),
            entities,
            occurred_at=parse_time_hint(note.meeting_date),
        )
        logger.info(
            f"Emitted TranscriptObserved for {note.id} "
            f"(meeting={entities.meeting_id}, opportunity={entities.opportunity_id})"
        )

        return IntakeResult(
            transcript_id=note.id,
            meeting=meeting,
            opportunity=opportunity,
            entities=entities,
        )
