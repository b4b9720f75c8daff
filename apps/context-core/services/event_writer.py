"""
EventWriter: fire-and-forget emission of canonical events

Observation pipelines call the emit_* helpers and move on. Appends run on a
background thread pool; a failed write is logged by the store and not retried,
so the fact is lost unless the upstream system observes it again.
"""

from concurrent.futures import ThreadPoolExecutor, Future
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from config import settings
from models.event import EventType, EventEntities, SourceSystem
from services.event_store import EventStore, EventInput
import logging

logger = logging.getLogger(__name__)

REMINDER_KINDS = ("follow_up", "meeting", "task")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _compact(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


class EventWriter:
    """Submits appends to the store without blocking the caller"""

    def __init__(self, store: Optional[EventStore] = None, max_workers: Optional[int] = None):
        self.store = store or EventStore()
        self.executor = ThreadPoolExecutor(
            max_workers=max_workers or settings.WRITER_WORKERS,
            thread_name_prefix="event-writer",
        )

    def emit(self, event: EventInput) -> Future:
        """Queue a single append. The returned future resolves to the event id or None."""
        return self.executor.submit(self.store.append, event)

    def emit_batch(self, events: List[EventInput]) -> Future:
        """Queue a batch append. The returned future resolves to None or an error message."""
        return self.executor.submit(self.store.append_batch, events)

    def shutdown(self, wait: bool = True):
        self.executor.shutdown(wait=wait)

    # Convenience emitters, one per observed fact. They hand plain dicts to
    # the store, which validates them on the writer thread.

    def emit_calendar_observed(self, meeting: Dict[str, Any], occurred_at: datetime) -> Future:
        return self.emit({
            "type": EventType.CALENDAR_OBSERVED,
            "source": SourceSystem.CALENDAR,
            "occurred_at": occurred_at,
            "entities": {
                "meeting_id": meeting.get("id"),
                "person_ids": meeting.get("attendees") or [],
            },
            "payload": meeting,
        })

    def emit_email_thread_observed(self, email: Dict[str, Any], occurred_at: datetime) -> Future:
        return self.emit({
            "type": EventType.EMAIL_THREAD_OBSERVED,
            "source": SourceSystem.EMAIL,
            "occurred_at": occurred_at,
            "entities": {
                "thread_id": email.get("thread_id"),
                "person_ids": email.get("participants") or [],
            },
            "payload": email,
        })

    def emit_email_sent(self, email: Dict[str, Any], occurred_at: datetime) -> Future:
        return self.emit({
            "type": EventType.EMAIL_SENT,
            "source": SourceSystem.EMAIL,
            "occurred_at": occurred_at,
            "entities": {
                "thread_id": email.get("thread_id"),
                "person_ids": email.get("to") or [],
            },
            "payload": email,
        })

    def emit_task_created(self, task: Dict[str, Any]) -> Future:
        return self.emit({
            "type": EventType.TASK_CREATED,
            "source": SourceSystem.INTERNAL,
            "occurred_at": _now(),
            "payload": task,
            "derived_metadata": _compact({
                "priority": task.get("priority"),
                "source": task.get("source"),
            }),
        })

    def emit_follow_up_created(self, follow_up: Dict[str, Any]) -> Future:
        contact_email = follow_up.get("contact_email")
        return self.emit({
            "type": EventType.FOLLOW_UP_CREATED,
            "source": SourceSystem.INTERNAL,
            "occurred_at": _now(),
            "entities": {
                "person_ids": [contact_email] if contact_email else [],
                "meeting_id": follow_up.get("meeting_id"),
            },
            "payload": follow_up,
            "derived_metadata": _compact({
                "urgency": follow_up.get("urgency"),
                "contact_name": follow_up.get("contact_name"),
            }),
        })

    def emit_reminder_fired(self, reminder_kind: str, details: Dict[str, Any]) -> Future:
        if reminder_kind not in REMINDER_KINDS:
            logger.warning(f"Unknown reminder kind '{reminder_kind}', emitting anyway")
        return self.emit({
            "type": EventType.REMINDER_FIRED,
            "source": SourceSystem.INTERNAL,
            "occurred_at": _now(),
            "entities": {"meeting_id": details.get("meeting_id")},
            "payload": details,
            "derived_metadata": {"reminder_kind": reminder_kind},
        })

    def emit_transcript_observed(
        self,
        note: Dict[str, Any],
        entities: EventEntities,
        occurred_at: Optional[datetime] = None,
    ) -> Future:
        return self.emit({
            "type": EventType.TRANSCRIPT_OBSERVED,
            "source": SourceSystem.TRANSCRIPTION,
            "occurred_at": occurred_at or _now(),
            "entities": entities,
            "payload": note,
        })

    def emit_opportunity_observed(self, opportunity: Dict[str, Any], occurred_at: datetime) -> Future:
        return self.emit({
            "type": EventType.OPPORTUNITY_OBSERVED,
            "source": SourceSystem.CRM,
            "occurred_at": occurred_at,
            "entities": {
                "opportunity_id": opportunity.get("id"),
                "account_id": opportunity.get("account_id"),
                "person_ids": opportunity.get("contact_emails") or [],
            },
            "payload": opportunity,
        })
