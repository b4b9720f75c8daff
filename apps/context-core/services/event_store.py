"""
EventStore: the canonical, append-only event log

Rules:
1. Events are only ever inserted. There is no update or delete method, and
   read access goes through `select()`, which hands out a select builder only.
2. Writes never raise into the observing pipeline. Failures are logged here
   and reported through the return value.
3. The store assigns `id` and `ingested_at` (column defaults in the events table).
"""

from supabase import create_client, Client
from pydantic import ValidationError
from config import settings
from typing import List, Optional, Dict, Any, Iterable, Union
from models.event import EventBase, EventEntities, parse_event, payload_dict
import logging

logger = logging.getLogger(__name__)

ENTITY_COLUMNS = (
    "account_id",
    "opportunity_id",
    "meeting_id",
    "thread_id",
    "transcript_id",
)

EventInput = Union[EventBase, Dict[str, Any]]


def event_to_row(event: EventBase) -> Dict[str, Any]:
    """Flatten an event into an events-table row (without store-assigned fields)"""
    row = {
        "type": event.type.value,
        "source": event.source.value,
        "occurred_at": event.occurred_at.isoformat(),
        "person_ids": list(event.entities.person_ids),
        "payload": payload_dict(event),
        "derived_metadata": event.model_dump(mode="json", include={"derived_metadata"})["derived_metadata"] or None,
    }
    for column in ENTITY_COLUMNS:
        row[column] = getattr(event.entities, column)
    return row


def row_to_event(row: Dict[str, Any]) -> EventBase:
    """Rebuild the typed event from a stored row. Raises ValidationError on malformed rows."""
    entities = {"person_ids": row.get("person_ids") or []}
    for column in ENTITY_COLUMNS:
        entities[column] = row.get(column)

    return parse_event({
        "id": row.get("id"),
        "type": row.get("type"),
        "source": row.get("source"),
        "occurred_at": row.get("occurred_at"),
        "ingested_at": row.get("ingested_at"),
        "entities": EventEntities(**entities),
        "payload": row.get("payload") or {},
        "derived_metadata": row.get("derived_metadata") or {},
    })


def _validate(event: EventInput) -> EventBase:
    if isinstance(event, EventBase):
        return event
    return parse_event(event)


class EventStore:
    """Append-only Supabase-backed event log"""

    def __init__(self, client: Optional[Client] = None, table: Optional[str] = None):
        self._client = client
        self.table = table or settings.EVENTS_TABLE

    @property
    def client(self) -> Client:
        # Created on first use so a missing configuration surfaces as a
        # logged store failure instead of an import-time error
        if self._client is None:
            self._client = create_client(
                settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY
            )
        return self._client

    def append(self, event: EventInput) -> Optional[str]:
        """Write a single event

        Args:
            event: Event model, or a dict validated against the event union

        Returns:
            The id assigned by the store, or None if the write failed
        """
        try:
            validated = _validate(event)
        except ValidationError as e:
            event_type = event.get("type") if isinstance(event, dict) else None
            logger.error(f"Rejected malformed event (type={event_type}): {e}")
            return None

        try:
            response = (
                self.client.table(self.table)
                .insert(event_to_row(validated))
                .execute()
            )
        except Exception as e:
            logger.error(
                f"Failed to append {validated.type.value} event: {e}", exc_info=True
            )
            return None

        if not response.data:
            logger.error(f"Store returned no row for {validated.type.value} event")
            return None

        event_id = response.data[0]["id"]
        logger.info(f"Appended {validated.type.value} event from {validated.source.value}")
        return event_id

    def append_batch(self, events: Iterable[EventInput]) -> Optional[str]:
        """Write several events in one request

        The batch is all-or-nothing: one malformed event rejects the batch.

        Returns:
            None on success, otherwise an error message
        """
        events = list(events)
        if not events:
            return None

        validated: List[EventBase] = []
        for index, event in enumerate(events):
            try:
                validated.append(_validate(event))
            except ValidationError as e:
                message = f"Malformed event at index {index}: {e}"
                logger.error(f"Rejected event batch: {message}")
                return message

        try:
            self.client.table(self.table).insert(
                [event_to_row(event) for event in validated]
            ).execute()
        except Exception as e:
            logger.error(f"Failed to append batch of {len(validated)} events: {e}", exc_info=True)
            return str(e)

        logger.info(f"Appended {len(validated)} events in batch")
        return None

    def select(self, columns: str = "*"):
        """Read-only query builder over the events table"""
        return self.client.table(self.table).select(columns)
