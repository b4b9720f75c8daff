from pydantic import BaseModel, Field, TypeAdapter, field_validator
from typing import Optional, Dict, Any, List, Literal, Union, Annotated
from datetime import datetime, timezone
from enum import Enum


class EventType(str, Enum):
    CALENDAR_OBSERVED = "CalendarObserved"
    EMAIL_THREAD_OBSERVED = "EmailThreadObserved"
    EMAIL_SENT = "EmailSent"
    TASK_CREATED = "TaskCreated"
    FOLLOW_UP_CREATED = "FollowUpCreated"
    REMINDER_FIRED = "ReminderFired"
    TRANSCRIPT_OBSERVED = "TranscriptObserved"
    OPPORTUNITY_OBSERVED = "OpportunityObserved"


class SourceSystem(str, Enum):
    CALENDAR = "calendar"
    EMAIL = "email"
    CRM = "crm"
    TRANSCRIPTION = "transcription"
    MESSAGING = "messaging"
    INTERNAL = "internal"


class EventEntities(BaseModel):
    """Foreign keys used for indexed lookup only (never integrity-checked)"""
    person_ids: List[str] = []
    account_id: Optional[str] = None
    opportunity_id: Optional[str] = None
    meeting_id: Optional[str] = None
    thread_id: Optional[str] = None
    transcript_id: Optional[str] = None

    class Config:
        frozen = True


# Payloads keep whatever extra fields the upstream system sent.

class CalendarPayload(BaseModel):
    title: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    location: Optional[str] = None
    description: Optional[str] = None
    attendees: List[str] = []

    class Config:
        extra = "allow"
        frozen = True


class EmailThreadPayload(BaseModel):
    subject: Optional[str] = None
    sender: Optional[str] = Field(default=None, alias="from")
    snippet: Optional[str] = None

    class Config:
        extra = "allow"
        frozen = True
        populate_by_name = True


class EmailSentPayload(BaseModel):
    subject: Optional[str] = None
    to: List[str] = []
    body: Optional[str] = None

    class Config:
        extra = "allow"
        frozen = True


class TaskPayload(BaseModel):
    title: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[str] = None
    source: Optional[str] = None

    class Config:
        extra = "allow"
        frozen = True


class FollowUpPayload(BaseModel):
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    context: Optional[str] = None
    urgency: Optional[str] = None

    class Config:
        extra = "allow"
        frozen = True


class ReminderPayload(BaseModel):
    message: Optional[str] = None
    meeting_id: Optional[str] = None

    class Config:
        extra = "allow"
        frozen = True


class TranscriptPayload(BaseModel):
    title: Optional[str] = None
    content: str = ""
    summary: Optional[str] = None
    action_items: List[str] = []
    attendees: List[str] = []
    meeting_date: Optional[str] = None
    duration_minutes: Optional[int] = None
    tags: List[str] = []

    class Config:
        extra = "allow"
        frozen = True


class OpportunityPayload(BaseModel):
    name: Optional[str] = None
    stage: Optional[str] = None
    amount: Optional[float] = None
    account_name: Optional[str] = None
    close_date: Optional[str] = None

    class Config:
        extra = "allow"
        frozen = True


class EventBase(BaseModel):
    """Fields shared by every event variant.

    `id` and `ingested_at` are assigned by the store at write time and are
    None on events that have not been written yet.
    """
    id: Optional[str] = None
    source: SourceSystem
    occurred_at: datetime
    ingested_at: Optional[datetime] = None
    entities: EventEntities = EventEntities()
    derived_metadata: Dict[str, Any] = {}

    class Config:
        frozen = True

    @field_validator("occurred_at", "ingested_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Naive timestamps from upstream systems are treated as UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class CalendarObservedEvent(EventBase):
    type: Literal[EventType.CALENDAR_OBSERVED] = EventType.CALENDAR_OBSERVED
    payload: CalendarPayload = CalendarPayload()


class EmailThreadObservedEvent(EventBase):
    type: Literal[EventType.EMAIL_THREAD_OBSERVED] = EventType.EMAIL_THREAD_OBSERVED
    payload: EmailThreadPayload = EmailThreadPayload()


class EmailSentEvent(EventBase):
    type: Literal[EventType.EMAIL_SENT] = EventType.EMAIL_SENT
    payload: EmailSentPayload = EmailSentPayload()


class TaskCreatedEvent(EventBase):
    type: Literal[EventType.TASK_CREATED] = EventType.TASK_CREATED
    payload: TaskPayload = TaskPayload()


class FollowUpCreatedEvent(EventBase):
    type: Literal[EventType.FOLLOW_UP_CREATED] = EventType.FOLLOW_UP_CREATED
    payload: FollowUpPayload = FollowUpPayload()


class ReminderFiredEvent(EventBase):
    type: Literal[EventType.REMINDER_FIRED] = EventType.REMINDER_FIRED
    payload: ReminderPayload = ReminderPayload()


class TranscriptObservedEvent(EventBase):
    type: Literal[EventType.TRANSCRIPT_OBSERVED] = EventType.TRANSCRIPT_OBSERVED
    payload: TranscriptPayload = TranscriptPayload()


class OpportunityObservedEvent(EventBase):
    type: Literal[EventType.OPPORTUNITY_OBSERVED] = EventType.OPPORTUNITY_OBSERVED
    payload: OpportunityPayload = OpportunityPayload()


Event = Annotated[
    Union[
        CalendarObservedEvent,
        EmailThreadObservedEvent,
        EmailSentEvent,
        TaskCreatedEvent,
        FollowUpCreatedEvent,
        ReminderFiredEvent,
        TranscriptObservedEvent,
        OpportunityObservedEvent,
    ],
    Field(discriminator="type"),
]

EVENT_ADAPTER = TypeAdapter(Event)
TIMESTAMP_ADAPTER = TypeAdapter(datetime)


def parse_timestamp(value: Any) -> datetime:
    """ISO-8601 string or datetime to an aware datetime (naive means UTC)

    Raises ValidationError when the value is not a timestamp.
    """
    moment = TIMESTAMP_ADAPTER.validate_python(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def parse_event(data: Dict[str, Any]) -> EventBase:
    """Validate a plain dict into the event variant named by its `type`"""
    return EVENT_ADAPTER.validate_python(data)


def payload_dict(event: EventBase) -> Dict[str, Any]:
    """Payload as a JSON-ready dict, keeping the upstream field names"""
    return event.payload.model_dump(mode="json", by_alias=True, exclude_none=True)
