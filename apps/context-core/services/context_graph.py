"""
ContextGraph: read-only projections over the event log

No writes, no inference. Every query degrades to an empty result when the
store is unreachable or returns something malformed, so a brief composed from
many queries loses a section instead of failing outright.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple
from pydantic import ValidationError
from config import settings
from models.event import EventBase, EventType, payload_dict, parse_timestamp
from models.timeline import (
    TimelineEvent,
    PersonInteraction,
    RelatedEntities,
    CooccurrenceResult,
    EventStats,
)
from services.event_store import EventStore, row_to_event
import logging

logger = logging.getLogger(__name__)


def _summarize_reminder(event: EventBase) -> str:
    kind = event.derived_metadata.get("reminder_kind") or "unknown"
    return f"Reminder fired ({kind})"


SUMMARIES: Dict[EventType, Callable[[EventBase], str]] = {
    EventType.CALENDAR_OBSERVED: lambda e: f"Meeting: {e.payload.title or 'Untitled'}",
    EventType.EMAIL_THREAD_OBSERVED: lambda e: (
        f"Email: {e.payload.subject or 'No subject'} from {e.payload.sender or 'Unknown'}"
    ),
    EventType.EMAIL_SENT: lambda e: f"Sent email: {e.payload.subject or 'No subject'}",
    EventType.TASK_CREATED: lambda e: f"Task created: {e.payload.title or 'Untitled'}",
    EventType.FOLLOW_UP_CREATED: lambda e: f"Follow-up: {e.payload.contact_name or 'Unknown contact'}",
    EventType.REMINDER_FIRED: _summarize_reminder,
    EventType.TRANSCRIPT_OBSERVED: lambda e: f"Transcript: {e.payload.title or 'Untitled meeting'}",
    EventType.OPPORTUNITY_OBSERVED: lambda e: f"Opportunity: {e.payload.name or 'Unnamed'}",
}


def summarize(event: EventBase) -> str:
    """One-line human summary derived from type and payload"""
    summarizer = SUMMARIES.get(event.type)
    if summarizer is None:
        return f"Event: {event.type.value}"
    return summarizer(event)


def to_timeline_event(event: EventBase) -> TimelineEvent:
    return TimelineEvent(
        id=event.id,
        type=event.type,
        source=event.source,
        occurred_at=event.occurred_at,
        summary=summarize(event),
        entities=event.entities,
        payload=payload_dict(event),
        derived_metadata=event.derived_metadata,
    )


def to_person_interaction(person_id: str, event: TimelineEvent) -> PersonInteraction:
    return PersonInteraction(
        person_id=person_id,
        event_id=event.id,
        event_type=event.type,
        source=event.source,
        occurred_at=event.occurred_at,
        context=event.summary,
        related_entities=RelatedEntities(
            meeting_id=event.entities.meeting_id,
            thread_id=event.entities.thread_id,
            account_id=event.entities.account_id,
            transcript_id=event.entities.transcript_id,
        ),
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(moment: datetime) -> str:
    return moment.isoformat()


def _row_id(row) -> Optional[str]:
    return row.get("id") if isinstance(row, dict) else None


class ContextGraph:
    """Stateless read functions over the EventStore"""

    def __init__(self, store: Optional[EventStore] = None):
        self.store = store or EventStore()

    # ==================== INTERNALS ====================

    def _fetch_timeline(self, name: str, build: Callable) -> List[TimelineEvent]:
        """Run a query built on top of `store.select()` and parse its rows

        Rows that fail validation are skipped; any store error yields [].
        """
        try:
            response = build(self.store.select()).execute()
        except Exception as e:
            logger.error(f"[ContextGraph] {name} error: {e}")
            return []

        events = []
        for row in response.data or []:
            try:
                events.append(to_timeline_event(row_to_event(row)))
            except (ValidationError, TypeError, AttributeError) as e:
                logger.warning(f"[ContextGraph] {name} skipped malformed row {_row_id(row)}: {e}")
        return events

    def _events_by_entity(self, name: str, column: str, value: str) -> List[TimelineEvent]:
        return self._fetch_timeline(
            name,
            lambda q: q.eq(column, value).order("occurred_at", desc=False),
        )

    # ==================== PERSON VIEWS ====================

    def timeline_for_person(self, person_id: str, limit: int = None) -> List[TimelineEvent]:
        """All events referencing a person, oldest first

        Args:
            person_id: Email address or other person identifier
            limit: Maximum number of events (default DEFAULT_TIMELINE_LIMIT)
        """
        limit = limit or settings.DEFAULT_TIMELINE_LIMIT
        return self._fetch_timeline(
            "timeline_for_person",
            lambda q: q.contains("person_ids", [person_id])
            .order("occurred_at", desc=False)
            .limit(limit),
        )

    def recent_timeline_for_person(self, person_id: str, days_back: int = None) -> List[TimelineEvent]:
        """Events referencing a person inside the lookback window, newest first"""
        days_back = days_back or settings.INTERACTION_LOOKBACK_DAYS
        since = _utcnow() - timedelta(days=days_back)
        return self._fetch_timeline(
            "recent_timeline_for_person",
            lambda q: q.contains("person_ids", [person_id])
            .gte("occurred_at", _iso(since))
            .order("occurred_at", desc=True),
        )

    def recent_interactions(self, person_id: str, days_back: int = None) -> List[PersonInteraction]:
        """Recent interactions with a person, newest first"""
        return [
            to_person_interaction(person_id, event)
            for event in self.recent_timeline_for_person(person_id, days_back)
        ]

    def person_cooccurrences(self, limit: int = 50, scan_cap: int = None) -> List[CooccurrenceResult]:
        """People who appear together in events

        Only the most recent `scan_cap` events naming two or more people are
        scanned, and pairs are accumulated in memory. Results are ordered by
        shared event count, then by most recent co-occurrence.
        """
        scan_cap = scan_cap or settings.COOCCURRENCE_SCAN_CAP
        try:
            response = (
                self.store.select("id, type, occurred_at, person_ids")
                .gte("person_count", 2)
                .order("occurred_at", desc=True)
                .limit(scan_cap)
                .execute()
            )
        except Exception as e:
            logger.error(f"[ContextGraph] person_cooccurrences error: {e}")
            return []

        pairs: Dict[Tuple[str, str], dict] = {}
        for row in response.data or []:
            try:
                person_ids = sorted({p for p in row.get("person_ids") or [] if isinstance(p, str) and p})
                event_type = EventType(row["type"])
                occurred_at = parse_timestamp(row["occurred_at"])
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"[ContextGraph] person_cooccurrences skipped row {_row_id(row)}: {e}")
                continue
            if len(person_ids) < 2:
                continue

            for i in range(len(person_ids)):
                for j in range(i + 1, len(person_ids)):
                    key = (person_ids[i], person_ids[j])
                    pair = pairs.get(key)
                    if pair is None:
                        pairs[key] = {"count": 1, "types": [event_type], "most_recent": occurred_at}
                        continue
                    pair["count"] += 1
                    if event_type not in pair["types"]:
                        pair["types"].append(event_type)
                    if occurred_at > pair["most_recent"]:
                        pair["most_recent"] = occurred_at

        ranked = sorted(
            pairs.items(),
            key=lambda item: (-item[1]["count"], -item[1]["most_recent"].timestamp(), item[0]),
        )
        return [
            CooccurrenceResult(
                person_a=a,
                person_b=b,
                shared_events=value["count"],
                event_types=value["types"],
                most_recent=value["most_recent"],
            )
            for (a, b), value in ranked[:limit]
        ]

    # ==================== ENTITY LOOKUPS ====================

    def events_for_meeting(self, meeting_id: str) -> List[TimelineEvent]:
        return self._events_by_entity("events_for_meeting", "meeting_id", meeting_id)

    def events_for_thread(self, thread_id: str) -> List[TimelineEvent]:
        return self._events_by_entity("events_for_thread", "thread_id", thread_id)

    def events_for_account(self, account_id: str) -> List[TimelineEvent]:
        return self._events_by_entity("events_for_account", "account_id", account_id)

    def events_for_opportunity(self, opportunity_id: str) -> List[TimelineEvent]:
        return self._events_by_entity("events_for_opportunity", "opportunity_id", opportunity_id)

    def events_for_transcript(self, transcript_id: str) -> List[TimelineEvent]:
        return self._events_by_entity("events_for_transcript", "transcript_id", transcript_id)

    def calendar_event_for_meeting(self, meeting_id: str) -> Optional[TimelineEvent]:
        """The most recently observed calendar entry for a meeting, if any"""
        events = self._fetch_timeline(
            "calendar_event_for_meeting",
            lambda q: q.eq("type", EventType.CALENDAR_OBSERVED.value)
            .eq("meeting_id", meeting_id)
            .order("occurred_at", desc=True)
            .limit(1),
        )
        return events[0] if events else None

    # ==================== TRANSCRIPTS ====================

    def recent_transcripts(self, days_back: int = None, limit: int = 50) -> List[TimelineEvent]:
        days_back = days_back or settings.INTERACTION_LOOKBACK_DAYS
        since = _utcnow() - timedelta(days=days_back)
        return self._fetch_timeline(
            "recent_transcripts",
            lambda q: q.eq("type", EventType.TRANSCRIPT_OBSERVED.value)
            .gte("occurred_at", _iso(since))
            .order("occurred_at", desc=True)
            .limit(limit),
        )

    def transcripts_for_meeting(self, meeting_id: str) -> List[TimelineEvent]:
        return self._fetch_timeline(
            "transcripts_for_meeting",
            lambda q: q.eq("type", EventType.TRANSCRIPT_OBSERVED.value)
            .eq("meeting_id", meeting_id)
            .order("occurred_at", desc=False),
        )

    def transcripts_for_person(self, person_id: str, limit: int = 20) -> List[TimelineEvent]:
        return self._fetch_timeline(
            "transcripts_for_person",
            lambda q: q.eq("type", EventType.TRANSCRIPT_OBSERVED.value)
            .contains("person_ids", [person_id])
            .order("occurred_at", desc=True)
            .limit(limit),
        )

    # ==================== LINKER CANDIDATES ====================

    def calendar_events_between(self, start: datetime, end: datetime, limit: int = None) -> List[TimelineEvent]:
        """Calendar observations in [start, end], newest first"""
        limit = limit or settings.LINKER_CANDIDATE_LIMIT
        return self._fetch_timeline(
            "calendar_events_between",
            lambda q: q.eq("type", EventType.CALENDAR_OBSERVED.value)
            .gte("occurred_at", _iso(start))
            .lte("occurred_at", _iso(end))
            .order("occurred_at", desc=True)
            .limit(limit),
        )

    def events_with_opportunity(self, limit: int = None) -> List[TimelineEvent]:
        """Events carrying an opportunity reference, newest first"""
        limit = limit or settings.LINKER_OPPORTUNITY_SCAN_LIMIT
        return self._fetch_timeline(
            "events_with_opportunity",
            lambda q: q.not_.is_("opportunity_id", "null")
            .order("occurred_at", desc=True)
            .limit(limit),
        )

    # ==================== FEEDS & STATS ====================

    def activity_feed(self, limit: int = None, types: Optional[Sequence[str]] = None) -> List[TimelineEvent]:
        """Global feed, newest first, optionally restricted to some event types"""
        limit = limit or settings.DEFAULT_FEED_LIMIT
        type_filter = []
        for event_type in types or []:
            try:
                type_filter.append(EventType(event_type).value)
            except ValueError:
                logger.warning(f"[ContextGraph] activity_feed ignoring unknown type '{event_type}'")
        if types and not type_filter:
            return []

        def build(q):
            q = q.order("occurred_at", desc=True).limit(limit)
            if type_filter:
                q = q.in_("type", type_filter)
            return q

        return self._fetch_timeline("activity_feed", build)

    def todays_events(self, now: Optional[datetime] = None) -> List[TimelineEvent]:
        """Events in [local midnight, next local midnight), oldest first"""
        now = (now or datetime.now()).astimezone()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        end_of_day = start_of_day + timedelta(days=1)
        return self._fetch_timeline(
            "todays_events",
            lambda q: q.gte("occurred_at", _iso(start_of_day))
            .lt("occurred_at", _iso(end_of_day))
            .order("occurred_at", desc=False),
        )

    def recent_events(self, hours: int = 48) -> List[TimelineEvent]:
        """Everything observed in the last N hours, oldest first (debug view)"""
        since = _utcnow() - timedelta(hours=hours)
        return self._fetch_timeline(
            "recent_events",
            lambda q: q.gte("occurred_at", _iso(since)).order("occurred_at", desc=False),
        )

    def event_stats(self, days_back: int = None) -> EventStats:
        """Event counts by type and by source over the lookback window"""
        days_back = days_back or settings.STATS_LOOKBACK_DAYS
        since = _utcnow() - timedelta(days=days_back)
        try:
            response = (
                self.store.select("type, source")
                .gte("occurred_at", _iso(since))
                .execute()
            )
        except Exception as e:
            logger.error(f"[ContextGraph] event_stats error: {e}")
            return EventStats(days_back=days_back)

        by_type: Dict[str, int] = {}
        by_source: Dict[str, int] = {}
        rows = response.data or []
        for row in rows:
            by_type[row.get("type")] = by_type.get(row.get("type"), 0) + 1
            by_source[row.get("source")] = by_source.get(row.get("source"), 0) + 1

        return EventStats(total=len(rows), by_type=by_type, by_source=by_source, days_back=days_back)


def debug_report(events: List[TimelineEvent], hours: int) -> Dict:
    """Counts plus a compact timeline, for eyeballing recent ingestion"""
    by_type: Dict[str, int] = {}
    by_source: Dict[str, int] = {}
    for event in events:
        by_type[event.type.value] = by_type.get(event.type.value, 0) + 1
        by_source[event.source.value] = by_source.get(event.source.value, 0) + 1

    return {
        "summary": {
            "total": len(events),
            "hours": hours,
            "by_type": by_type,
            "by_source": by_source,
        },
        "timeline": [
            {
                "id": e.id,
                "type": e.type.value,
                "source": e.source.value,
                "occurred_at": e.occurred_at.isoformat(),
                "summary": e.summary,
                "entities": e.entities.model_dump(exclude_none=True),
            }
            for e in events
        ],
    }
