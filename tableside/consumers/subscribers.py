"""
Subscribers for change notifications relayed by the outbox poller.

These feed dashboards, kitchen/bar displays and alerting. They are UI-only:
nothing in the order or payment flow waits for them.
"""
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List

log = logging.getLogger("tableside.subscribers")

Handler = Callable[[Dict[str, Any]], Awaitable[None]]

SUBSCRIBERS: Dict[str, List[Handler]] = defaultdict(list)


def subscribe(event_type: str):
    """Registers a coroutine for an event type; ``*`` receives every event."""
    def decorator(handler: Handler) -> Handler:
        SUBSCRIBERS[event_type].append(handler)
        return handler
    return decorator


def handlers_for(event_type: str) -> List[Handler]:
    return SUBSCRIBERS.get(event_type, []) + SUBSCRIBERS.get("*", [])


@subscribe("order.created.v1")
async def announce_new_order(payload: Dict[str, Any]):
    log.info(
        f"KITCHEN DISPLAY: Order #{payload.get('human_readable_id')} just placed "
        f"from Table {payload.get('table_number')}."
    )


@subscribe("order.status_changed.v1")
async def announce_status_change(payload: Dict[str, Any]):
    log.info(f"KITCHEN DISPLAY: Order #{payload.get('human_readable_id')} is now {payload.get('new_status')}.")


@subscribe("payment.succeeded.v1")
@subscribe("payment.refunded.v1")
async def announce_payment(payload: Dict[str, Any]):
    log.info(f"DASHBOARD: Payment update for order {payload.get('order_id')}.")


@subscribe("inventory.low_stock_alert.v1")
async def alert_low_stock(payload: Dict[str, Any]):
    log.warning(
        f"SYSTEM ALERT: {payload.get('name')} ({payload.get('menu_item_id')}) has low stock "
        f"({payload.get('quantity_in_stock')} remaining, threshold {payload.get('threshold')})."
    )
