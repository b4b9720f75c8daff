# Models module - Pydantic models for events and the read models derived from them
from models.event import (
    Event,
    EventBase,
    EventType,
    SourceSystem,
    EventEntities,
    parse_event,
)
from models.timeline import (
    TimelineEvent,
    PersonInteraction,
    RelatedEntities,
    CooccurrenceResult,
    EventStats,
)
from models.action import ExtractedAction, ExtractionStats, MatchType
from models.link import LinkedMeeting, LinkedOpportunity
from models.brief import (
    MeetingInfo,
    AttendeeContext,
    RelatedFollowUp,
    RelatedThread,
    PreMeetingBrief,
    RelatedOpportunity,
    SurfacedContext,
    PostMeetingInsights,
)

__all__ = [
    "Event",
    "EventBase",
    "EventType",
    "SourceSystem",
    "EventEntities",
    "parse_event",
    "TimelineEvent",
    "PersonInteraction",
    "RelatedEntities",
    "CooccurrenceResult",
    "EventStats",
    "ExtractedAction",
    "ExtractionStats",
    "MatchType",
    "LinkedMeeting",
    "LinkedOpportunity",
    "MeetingInfo",
    "AttendeeContext",
    "RelatedFollowUp",
    "RelatedThread",
    "PreMeetingBrief",
    "RelatedOpportunity",
    "SurfacedContext",
    "PostMeetingInsights",
]
