"""
TranscriptLinker: associates a newly observed transcript with an existing
calendar meeting and/or CRM opportunity

Read-only. Heuristics are tried in a fixed order and the first confident
match wins; no scoring beyond the thresholds below. None means "unlinked".
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Union
from pydantic import ValidationError
from config import settings
from models.event import parse_timestamp
from models.link import LinkedMeeting, LinkedOpportunity
from models.timeline import TimelineEvent
from services.context_graph import ContextGraph
from utils.text_cleaner import TextCleaner
from utils.fuzzy_matcher import FuzzyMatcher
import logging

logger = logging.getLogger(__name__)

TimeHint = Union[datetime, str, None]


def parse_time_hint(hint: TimeHint) -> Optional[datetime]:
    """Accept a datetime or an ISO-8601 string; anything unparseable is no hint"""
    if hint is None or hint == "":
        return None
    if isinstance(hint, str):
        hint = hint.strip()
    try:
        return parse_timestamp(hint)
    except ValidationError:
        logger.warning(f"Ignoring unparseable meeting time hint: {hint!r}")
        return None


def _normalized_people(people: Optional[Iterable[str]]) -> List[str]:
    return [TextCleaner.normalize_email(p) for p in people or [] if p]


class TranscriptLinker:
    """Finds the meeting and opportunity a transcript most plausibly belongs to"""

    def __init__(self, graph: Optional[ContextGraph] = None):
        self.graph = graph or ContextGraph()
        self.window = timedelta(hours=settings.LINKER_WINDOW_HOURS)
        self.default_lookback = timedelta(days=settings.LINKER_DEFAULT_LOOKBACK_DAYS)
        self.jaccard_threshold = settings.LINKER_TITLE_JACCARD_THRESHOLD
        self.temporal_tolerance = timedelta(minutes=settings.LINKER_TEMPORAL_FALLBACK_MINUTES)

    def find_linked_meeting(
        self,
        title: Optional[str] = None,
        occurred_at: TimeHint = None,
        attendee_ids: Optional[List[str]] = None,
    ) -> Optional[LinkedMeeting]:
        """Match a transcript to a calendar event

        Order: title match, then attendee overlap, then (only with a time
        hint) the closest calendar event if it lies within the temporal
        tolerance.

        Args:
            title: Transcript/meeting title
            occurred_at: When the meeting took place (datetime or ISO string)
            attendee_ids: Attendee emails

        Returns:
            LinkedMeeting, or None when nothing matches
        """
        hint = parse_time_hint(occurred_at)
        if hint is not None:
            start, end = hint - self.window, hint + self.window
        else:
            end = datetime.now(timezone.utc)
            start = end - self.default_lookback

        candidates = self.graph.calendar_events_between(start, end)
        if not candidates:
            logger.info("No calendar events in linker window")
            return None

        match = self._match_by_title(title, candidates)
        if match:
            return match

        match = self._match_by_attendees(attendee_ids, candidates)
        if match:
            return match

        if hint is not None:
            match = self._match_by_time(hint, candidates)
            if match:
                return match

        logger.info(f"No meeting linked for transcript '{title}'")
        return None

    def find_linked_opportunity(self, attendee_ids: Optional[List[str]] = None) -> Optional[LinkedOpportunity]:
        """First opportunity-bearing event (newest first) sharing a person with the attendees"""
        attendees = set(_normalized_people(attendee_ids))
        if not attendees:
            return None

        for event in self.graph.events_with_opportunity():
            if not event.entities.opportunity_id:
                continue
            if attendees.intersection(_normalized_people(event.entities.person_ids)):
                logger.info(f"Linked opportunity {event.entities.opportunity_id} by attendee email")
                return LinkedOpportunity(
                    opportunity_id=event.entities.opportunity_id,
                    account_id=event.entities.account_id,
                )

        return None

    # ==================== STRATEGIES ====================

    def _match_by_title(self, title: Optional[str], candidates: List[TimelineEvent]) -> Optional[LinkedMeeting]:
        wanted = TextCleaner.normalize_title(title or "")
        if not wanted:
            return None

        for event in candidates:
            candidate_title = TextCleaner.normalize_title(event.payload.get("title") or "")
            if FuzzyMatcher.titles_match(wanted, candidate_title, self.jaccard_threshold):
                return self._linked(event, "title")
        return None

    def _match_by_attendees(self, attendee_ids: Optional[List[str]], candidates: List[TimelineEvent]) -> Optional[LinkedMeeting]:
        attendees = set(_normalized_people(attendee_ids))
        if not attendees:
            return None

        for event in candidates:
            if attendees.intersection(_normalized_people(event.entities.person_ids)):
                return self._linked(event, "attendees")
        return None

    def _match_by_time(self, hint: datetime, candidates: List[TimelineEvent]) -> Optional[LinkedMeeting]:
        closest = min(candidates, key=lambda event: abs(event.occurred_at - hint))
        if abs(closest.occurred_at - hint) < self.temporal_tolerance:
            return self._linked(closest, "date")
        return None

    @staticmethod
    def _linked(event: TimelineEvent, reason: str) -> LinkedMeeting:
        logger.info(f"Linked meeting {event.entities.meeting_id or event.id} by {reason}")
        return LinkedMeeting(
            meeting_id=event.entities.meeting_id or event.id,
            title=event.payload.get("title"),
            start_time=event.occurred_at,
            match_reason=reason,
        )
