"""
Helpers shared by the brief generators for pulling follow-ups and email
threads out of a set of timeline events
"""

from typing import Dict, Iterable, List, Optional
from models.brief import RelatedFollowUp, RelatedThread
from models.event import EventType
from models.timeline import TimelineEvent


def unique_events(events: Iterable[TimelineEvent]) -> List[TimelineEvent]:
    """Drop repeated event ids, keeping the first occurrence"""
    seen: Dict[str, TimelineEvent] = {}
    for event in events:
        if event.id not in seen:
            seen[event.id] = event
    return list(seen.values())


def newest_first(events: Iterable[TimelineEvent]) -> List[TimelineEvent]:
    return sorted(events, key=lambda e: e.occurred_at, reverse=True)


def follow_ups_from(events: Iterable[TimelineEvent]) -> List[RelatedFollowUp]:
    follow_ups = []
    for event in events:
        if event.type != EventType.FOLLOW_UP_CREATED:
            continue
        payload = event.payload
        follow_ups.append(RelatedFollowUp(
            event_id=event.id,
            contact_name=payload.get("contact_name") or "Unknown",
            contact_email=payload.get("contact_email") or (event.entities.person_ids or [None])[0],
            context=payload.get("context") or "",
            urgency=payload.get("urgency") or "medium",
            created_at=event.occurred_at,
        ))
    return follow_ups


def threads_from(events: Iterable[TimelineEvent], limit: Optional[int] = None) -> List[RelatedThread]:
    """Email threads seen in the events, latest activity per thread, newest first"""
    threads: Dict[str, RelatedThread] = {}
    for event in events:
        if event.type != EventType.EMAIL_THREAD_OBSERVED:
            continue
        thread_id = event.entities.thread_id
        if not thread_id:
            continue

        existing = threads.get(thread_id)
        if existing is None or event.occurred_at > existing.last_activity:
            threads[thread_id] = RelatedThread(
                thread_id=thread_id,
                subject=event.payload.get("subject") or "No subject",
                sender=event.payload.get("from") or "Unknown",
                last_activity=event.occurred_at,
                snippet=event.payload.get("snippet"),
            )

    ranked = sorted(threads.values(), key=lambda t: t.last_activity, reverse=True)
    return ranked[:limit] if limit else ranked
