from pydantic import BaseModel
from typing import Optional, List
from enum import Enum


class MatchType(str, Enum):
    ACTION_ITEM = "action_item"
    COMMITMENT = "commitment"
    TIME_BOUND = "time_bound"
    FOLLOW_UP = "follow_up"


class ExtractedAction(BaseModel):
    text: str  # Captured span, as written
    mentioned_by: Optional[str] = None  # Speaker, when the line names one
    mentioned_time: Optional[str] = None  # Time expression, e.g. "Friday"
    related_person_ids: List[str] = []
    match_type: MatchType
    source_context: Optional[str] = None  # Surrounding text for audit


class ExtractionStats(BaseModel):
    total_actions: int = 0
    action_items: int = 0
    commitments: int = 0
    time_bound: int = 0
    follow_ups: int = 0
