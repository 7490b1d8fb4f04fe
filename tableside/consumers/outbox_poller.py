import asyncio
import logging
from tableside.models.outbox import OutboxEvent
from tableside.consumers.subscribers import handlers_for
from tableside.core.db import init_db, close_db
from tableside.core.config import POLLING_INTERVAL, MAX_ATTEMPTS, BATCH_SIZE, LOG_FORMAT

log = logging.getLogger("tableside.outbox_poller")


async def dispatch_event(event: OutboxEvent) -> int:
    """
    Routes an OutboxEvent to every subscriber of its type.
    This plays the part of the data store's realtime change feed.
    Returns the number of handlers invoked.
    """
    handlers = handlers_for(event.event_type)
    log.info(f"Poller DISPATCHING: {event.event_type} (ID: {event.id.hex[:8]}...) to {len(handlers)} subscriber(s)")

    if not handlers:
        log.warning(f"No subscriber for event type: {event.event_type}")

    for handler in handlers:
        await handler(event.payload)
    return len(handlers)


async def poll_outbox_for_new_events() -> int:
    """
    Queries the Outbox table for unpublished events and attempts to dispatch them.
    Returns how many events were published in this pass.
    """
    # Select events that haven't been published and haven't exceeded max attempts
    events = await OutboxEvent.filter(published=False, attempts__lt=MAX_ATTEMPTS).limit(BATCH_SIZE).order_by('created_at')

    published = 0
    for event in events:
        try:
            await dispatch_event(event)

            event.published = True
            await event.save(update_fields=['published'])
            published += 1

        except Exception:
            # Increment attempts on failure and save
            event.attempts += 1
            await event.save(update_fields=['attempts'])
            log.exception(f"Dispatch of {event.event_type} ({event.id}) failed, attempt {event.attempts}/{MAX_ATTEMPTS}")
    return published


async def start_outbox_poller():
    """Main loop for the poller service."""
    await init_db()
    log.info("--- Outbox Poller Service Started ---")

    try:
        while True:
            try:
                await poll_outbox_for_new_events()
            except Exception as e:
                log.error(f"Poller encountered a critical DB error: {e}.")

            await asyncio.sleep(POLLING_INTERVAL)
    finally:
        await close_db()

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    try:
        asyncio.run(start_outbox_poller())
    except KeyboardInterrupt:
        log.info("Poller service stopped.")
