from pydantic import BaseModel
from typing import Optional, Literal
from datetime import datetime


class LinkedMeeting(BaseModel):
    meeting_id: str
    title: Optional[str] = None
    start_time: datetime
    match_reason: Literal["title", "attendees", "date"]


class LinkedOpportunity(BaseModel):
    opportunity_id: str
    account_id: Optional[str] = None
    match_reason: Literal["attendee_email"] = "attendee_email"
