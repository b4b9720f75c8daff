from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from models.action import ExtractedAction, ExtractionStats
from models.timeline import TimelineEvent, PersonInteraction


class MeetingInfo(BaseModel):
    meeting_id: str
    title: str
    start_time: datetime
    end_time: Optional[datetime] = None
    location: Optional[str] = None
    description: Optional[str] = None


class AttendeeContext(BaseModel):
    email: str
    name: Optional[str] = None
    interaction_count: int = 0
    last_interaction: Optional[datetime] = None
    recent_interactions: List[PersonInteraction] = []


class RelatedFollowUp(BaseModel):
    event_id: str
    contact_name: str
    contact_email: Optional[str] = None
    context: str = ""
    urgency: str = "medium"
    created_at: datetime


class RelatedThread(BaseModel):
    thread_id: str
    subject: str
    sender: str = "Unknown"
    last_activity: datetime
    snippet: Optional[str] = None


class PreMeetingBrief(BaseModel):
    meeting: MeetingInfo
    attendees: List[AttendeeContext] = []
    recent_interactions: List[TimelineEvent] = []
    open_follow_ups: List[RelatedFollowUp] = []
    related_threads: List[RelatedThread] = []
    generated_at: datetime
    data_sources: List[str] = []


class RelatedOpportunity(BaseModel):
    opportunity_id: str
    account_id: Optional[str] = None


class SurfacedContext(BaseModel):
    related_opportunity: Optional[RelatedOpportunity] = None
    related_follow_ups: List[RelatedFollowUp] = []
    related_threads: List[RelatedThread] = []


class PostMeetingInsights(BaseModel):
    """Extracted actions plus correlated context, for review only"""
    meeting_id: Optional[str] = None
    transcript_id: str
    meeting_title: str
    meeting_date: datetime
    attendees: List[str] = []
    extracted_actions: List[ExtractedAction] = []
    surfaced_context: SurfacedContext = SurfacedContext()
    generated_at: datetime
    extraction_stats: ExtractionStats = ExtractionStats()
