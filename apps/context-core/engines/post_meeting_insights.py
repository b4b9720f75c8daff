"""
Post-Meeting Insights Generator - what was promised in a meeting, and what it touches

Read-only. Runs the ActionExtractor over a transcript and surfaces related
follow-ups and email threads for review. Nothing here creates tasks.
"""

from datetime import datetime, timezone
from typing import List, Optional
from config import settings
from models.brief import PostMeetingInsights, SurfacedContext, RelatedOpportunity
from models.event import EventType
from models.timeline import TimelineEvent
from services.context_graph import ContextGraph
from processors.action_extractor import ActionExtractor, compute_extraction_stats
from processors.transcript_linker import TranscriptLinker
from engines.surfacing import unique_events, follow_ups_from, threads_from
from utils.fanout import run_parallel
import logging

logger = logging.getLogger(__name__)


class PostMeetingInsightsGenerator:
    """Builds PostMeetingInsights from TranscriptObserved events"""

    def __init__(
        self,
        graph: Optional[ContextGraph] = None,
        linker: Optional[TranscriptLinker] = None,
        extractor: Optional[ActionExtractor] = None,
    ):
        self.graph = graph or ContextGraph()
        self.linker = linker or TranscriptLinker(self.graph)
        self.extractor = extractor or ActionExtractor()

    def generate(self, transcript_event: TimelineEvent) -> PostMeetingInsights:
        """Extract actions from a transcript and correlate them with known context

        Args:
            transcript_event: A TranscriptObserved timeline event

        Returns:
            PostMeetingInsights (sections may be empty when reads fail)
        """
        payload = transcript_event.payload
        entities = transcript_event.entities
        attendees = [a for a in payload.get("attendees") or entities.person_ids or [] if a]
        title = payload.get("title") or "Untitled Meeting"

        actions = self.extractor.extract(
            payload.get("content") or "",
            payload.get("action_items") or [],
            attendees,
        )

        meeting_id = entities.meeting_id
        if not meeting_id:
            linked = self.linker.find_linked_meeting(title, transcript_event.occurred_at, attendees)
            meeting_id = linked.meeting_id if linked else None

        opportunity_id, account_id = entities.opportunity_id, entities.account_id
        if not opportunity_id:
            linked_opportunity = self.linker.find_linked_opportunity(attendees)
            if linked_opportunity:
                opportunity_id = linked_opportunity.opportunity_id
                account_id = account_id or linked_opportunity.account_id

        insights = PostMeetingInsights(
            meeting_id=meeting_id,
            transcript_id=entities.transcript_id or transcript_event.id,
            meeting_title=title,
            meeting_date=transcript_event.occurred_at,
            attendees=attendees,
            extracted_actions=actions,
            surfaced_context=self._surface_context(attendees, meeting_id, opportunity_id, account_id),
            generated_at=datetime.now(timezone.utc),
            extraction_stats=compute_extraction_stats(actions),
        )
        logger.info(
            f"Post-meeting insights for transcript {insights.transcript_id}: "
            f"{len(actions)} actions extracted"
        )
        return insights

    def generate_for_transcript(self, transcript_id: str) -> Optional[PostMeetingInsights]:
        transcript = next(
            (e for e in self.graph.events_for_transcript(transcript_id)
             if e.type == EventType.TRANSCRIPT_OBSERVED),
            None,
        )
        if transcript is None:
            logger.info(f"No transcript found for ID: {transcript_id}")
            return None
        return self.generate(transcript)

    def generate_for_meeting(self, meeting_id: str) -> Optional[PostMeetingInsights]:
        """Insights for the most recent transcript linked to a meeting"""
        transcripts = self.graph.transcripts_for_meeting(meeting_id)
        if not transcripts:
            logger.info(f"No transcript found for meeting: {meeting_id}")
            return None
        return self.generate(transcripts[-1])

    def _surface_context(
        self,
        attendees: List[str],
        meeting_id: Optional[str],
        opportunity_id: Optional[str],
        account_id: Optional[str],
    ) -> SurfacedContext:
        calls = []
        if meeting_id:
            calls.append(("meeting", lambda: self.graph.events_for_meeting(meeting_id), []))
        for email in attendees[:settings.POST_MEETING_MAX_ATTENDEES]:
            calls.append((
                f"recent_timeline_for_person({email})",
                lambda email=email: self.graph.recent_timeline_for_person(
                    email, settings.FOLLOW_UP_LOOKBACK_DAYS
                ),
                [],
            ))

        results = run_parallel(calls)
        events = unique_events(e for key, _, _ in calls for e in results[key])

        related_opportunity = None
        if opportunity_id:
            related_opportunity = RelatedOpportunity(opportunity_id=opportunity_id, account_id=account_id)

        return SurfacedContext(
            related_opportunity=related_opportunity,
            related_follow_ups=follow_ups_from(events),
            related_threads=threads_from(events, settings.POST_MEETING_MAX_THREADS),
        )
