from typing import Dict, Any, Optional
from tableside.models.outbox import OutboxEvent
from uuid import UUID


async def create_outbox_event(
    aggregate_type: str,
    aggregate_id: Optional[UUID],
    event_type: str,
    payload: Dict[str, Any],
    conn: Any = None
) -> OutboxEvent:
    """
    Creates a new Outbox event record using the provided database connection (transaction).

    Passing 'conn' ensures the event is only visible if the business data commits.
    """
    return await OutboxEvent.create(
        aggregate_type=aggregate_type,
        aggregate_id=aggregate_id,
        event_type=event_type,
        payload=payload,
        published=False,
        attempts=0,
        using_db=conn
    )


async def publish_change(
    entity: str,
    event: str,
    entity_id: Optional[UUID],
    payload: Dict[str, Any],
    conn: Any = None
) -> OutboxEvent:
    """Publishes an ``(entity, event, payload)`` change notification, e.g. ``order.status_changed.v1``."""
    return await create_outbox_event(
        aggregate_type=entity,
        aggregate_id=entity_id,
        event_type=f"{entity}.{event}.v1",
        payload=payload,
        conn=conn,
    )
