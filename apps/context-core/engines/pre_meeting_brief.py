"""
Pre-Meeting Brief Generator - what you should know before walking into a meeting

Read-only. Composes ContextGraph queries; nothing is inferred or stored.
Attendee reads run in parallel and a failed read only empties its section.
"""

from datetime import datetime, timezone
from typing import List, Optional
from config import settings
from models.brief import PreMeetingBrief, MeetingInfo, AttendeeContext
from models.event import EventType
from models.timeline import TimelineEvent
from services.context_graph import ContextGraph
from engines.surfacing import unique_events, newest_first, follow_ups_from, threads_from
from utils.fanout import run_parallel
import logging

logger = logging.getLogger(__name__)

ATTENDEE_RECENT_INTERACTIONS = 5


def meeting_info(event: TimelineEvent) -> MeetingInfo:
    payload = event.payload
    return MeetingInfo(
        meeting_id=event.entities.meeting_id or event.id,
        title=payload.get("title") or "Untitled Meeting",
        start_time=payload.get("start_time") or event.occurred_at,
        end_time=payload.get("end_time"),
        location=payload.get("location"),
        description=payload.get("description"),
    )


def attendee_emails(event: TimelineEvent) -> List[str]:
    """Attendees from the entity references, falling back to the payload list"""
    people = event.entities.person_ids or [
        a for a in event.payload.get("attendees") or [] if isinstance(a, str)
    ]
    return list(dict.fromkeys(p for p in people if p))


class PreMeetingBriefGenerator:
    """Builds a PreMeetingBrief for a calendar meeting"""

    def __init__(self, graph: Optional[ContextGraph] = None):
        self.graph = graph or ContextGraph()

    def generate(self, meeting_id: str, days_back: int = 30) -> Optional[PreMeetingBrief]:
        """Build the brief for a meeting

        Args:
            meeting_id: Meeting identifier used on calendar events
            days_back: Lookback window for attendee interactions

        Returns:
            PreMeetingBrief, or None if no calendar event exists for the meeting
        """
        data_sources = ["calendar_event_for_meeting"]
        calendar_event = self.graph.calendar_event_for_meeting(meeting_id)
        if calendar_event is None:
            logger.info(f"No calendar event found for meeting {meeting_id}")
            return None

        attendees = attendee_emails(calendar_event)

        calls = [("meeting", lambda: self.graph.events_for_meeting(meeting_id), [])]
        data_sources.append("events_for_meeting")
        for email in attendees:
            calls.append((
                f"recent_interactions({email})",
                lambda email=email: self.graph.recent_interactions(email, days_back),
                [],
            ))
            calls.append((
                f"timeline_for_person({email})",
                lambda email=email: self.graph.timeline_for_person(
                    email, settings.PRE_MEETING_TIMELINE_LIMIT
                ),
                [],
            ))
            data_sources.extend([f"recent_interactions({email})", f"timeline_for_person({email})"])

        results = run_parallel(calls)

        attendee_contexts = []
        related_events: List[TimelineEvent] = []
        for email in attendees:
            interactions = results[f"recent_interactions({email})"]
            attendee_contexts.append(AttendeeContext(
                email=email,
                interaction_count=len(interactions),
                last_interaction=interactions[0].occurred_at if interactions else None,
                recent_interactions=interactions[:ATTENDEE_RECENT_INTERACTIONS],
            ))
            related_events.extend(results[f"timeline_for_person({email})"])

        related_events.extend(
            e for e in results["meeting"] if e.type != EventType.CALENDAR_OBSERVED
        )
        merged = newest_first(unique_events(related_events))

        brief = PreMeetingBrief(
            meeting=meeting_info(calendar_event),
            attendees=attendee_contexts,
            recent_interactions=merged[:settings.PRE_MEETING_MAX_RECENT],
            open_follow_ups=follow_ups_from(merged),
            related_threads=threads_from(merged),
            generated_at=datetime.now(timezone.utc),
            data_sources=list(dict.fromkeys(data_sources)),
        )
        logger.info(
            f"Pre-meeting brief for {meeting_id}: {len(attendees)} attendees, "
            f"{len(brief.open_follow_ups)} follow-ups, {len(brief.related_threads)} threads"
        )
        return brief

    def find_upcoming_brief(self, attendee_email: str) -> Optional[PreMeetingBrief]:
        """Brief for the latest meeting on an attendee's timeline"""
        meetings = [
            e for e in self.graph.timeline_for_person(attendee_email, 50)
            if e.type == EventType.CALENDAR_OBSERVED and e.entities.meeting_id
        ]
        if not meetings:
            logger.info(f"No upcoming meetings found for {attendee_email}")
            return None

        latest = newest_first(meetings)[0]
        return self.generate(latest.entities.meeting_id)
