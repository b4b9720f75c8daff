from pydantic import BaseModel
from typing import Optional, Dict, Any, List
from datetime import datetime
from models.event import EventType, SourceSystem, EventEntities


class TimelineEvent(BaseModel):
    """Read-side view of an event with a one-line summary (never persisted)"""
    id: str
    type: EventType
    source: SourceSystem
    occurred_at: datetime
    summary: str
    entities: EventEntities
    payload: Dict[str, Any] = {}
    derived_metadata: Dict[str, Any] = {}


class RelatedEntities(BaseModel):
    meeting_id: Optional[str] = None
    thread_id: Optional[str] = None
    account_id: Optional[str] = None
    transcript_id: Optional[str] = None


class PersonInteraction(BaseModel):
    """A timeline event scoped to one person"""
    person_id: str
    event_id: str
    event_type: EventType
    source: SourceSystem
    occurred_at: datetime
    context: str
    related_entities: RelatedEntities


class CooccurrenceResult(BaseModel):
    """Unordered person pair; person_a always sorts before person_b"""
    person_a: str
    person_b: str
    shared_events: int
    event_types: List[EventType]
    most_recent: datetime


class EventStats(BaseModel):
    total: int = 0
    by_type: Dict[str, int] = {}
    by_source: Dict[str, int] = {}
    days_back: int = 0
