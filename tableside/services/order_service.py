import logging
import secrets
import string
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from tortoise import timezone
from tortoise.exceptions import IntegrityError
from tortoise.transactions import in_transaction

from tableside.core import config
from tableside.core.errors import (
    EmptyCart,
    InsufficientStock,
    ItemNotFound,
    ItemUnavailable,
    OrderNotFound,
    RestaurantNotFound,
    TableNotFound,
)
from tableside.events.outbox_utility import publish_change
from tableside.models.order import Order, OrderItem, OrderStatus, PaymentStatus
from tableside.models.restaurant import MenuItem, Restaurant, RestaurantTable
from tableside.services import stock_ledger
from tableside.services.activity_log import log_activity
from tableside.services.actors import authorize_for_restaurant
from tableside.services.order_state import ensure_transition

log = logging.getLogger("tableside.orders")

DISPLAY_ID_ATTEMPTS = 5


def generate_display_id() -> str:
    """Short customer-facing order id: three letters and four digits, e.g. ``ABC1234``."""
    letters = "".join(secrets.choice(string.ascii_uppercase) for _ in range(3))
    digits = "".join(secrets.choice(string.digits) for _ in range(4))
    return letters + digits


class _DisplayIdTaken(Exception):
    pass


def _resolve_lines(items: List[Dict], menu_map: Dict[str, MenuItem]) -> List[Tuple[MenuItem, int]]:
    """
    Matches requested lines against the catalog. Missing or unavailable items
    fail the order under the strict policy and are dropped under the lenient one.
    """
    lines = []
    for it in items:
        mid_str = str(it["menu_item_id"])
        qty = int(it["quantity"])
        menu = menu_map.get(mid_str)

        error = None
        if not menu:
            error = ItemNotFound(f"Menu item {mid_str} not found.")
        elif not menu.available:
            error = ItemUnavailable(f"{menu.name} is currently unavailable.")

        if error:
            if config.UNAVAILABLE_ITEM_POLICY == config.LENIENT:
                log.warning(f"Skipping order line: {error.message}")
                continue
            raise error

        lines.append((menu, qty))
    return lines


async def place_order(
    restaurant_id: UUID,
    table_id: UUID,
    items: List[Dict],
    customer_name: Optional[str] = None,
    customer_email: Optional[str] = None,
    notes: Optional[str] = None,
) -> Order:
    """
    Creates the Order, its lines and the stock decrements in one transaction.

    Prices come from the catalog, never from the client. Lines are written one
    after the other so a failure leaves a deterministic point of rollback.
    """
    if not items:
        raise EmptyCart()

    for attempt in range(1, DISPLAY_ID_ATTEMPTS + 1):
        try:
            order, lines = await _write_order(restaurant_id, table_id, items, customer_name, customer_email, notes)
            break
        except _DisplayIdTaken:
            log.warning(f"Order display id collision, retrying (attempt {attempt}/{DISPLAY_ID_ATTEMPTS})")
    else:
        raise RuntimeError("Could not allocate a unique order display id.")

    await log_activity(
        order.restaurant_id,
        None,
        "ORDER_CREATED",
        {"order_id": str(order.id), "table_id": str(order.table_id), "item_count": len(lines)},
    )
    await order.fetch_related("items", "items__menu_item")
    log.info(f"Order {order.human_readable_id} ({order.id}) created, total {order.total_amount}")
    return order


async def _write_order(
    restaurant_id: UUID,
    table_id: UUID,
    items: List[Dict],
    customer_name: Optional[str],
    customer_email: Optional[str],
    notes: Optional[str],
) -> Tuple[Order, List[Tuple[MenuItem, int]]]:
    async with in_transaction() as conn:
        restaurant = await Restaurant.get_or_none(id=restaurant_id).using_db(conn)
        if not restaurant or not restaurant.is_active:
            raise RestaurantNotFound("Restaurant not found or is inactive.")

        table = await RestaurantTable.get_or_none(id=table_id, restaurant_id=restaurant.id).using_db(conn)
        if not table:
            raise TableNotFound(f"Table {table_id} not found for this restaurant.")

        # One batch lookup for every referenced item
        menu_item_ids = list({UUID(str(it["menu_item_id"])) for it in items})
        menu_items = await MenuItem.filter(
            id__in=menu_item_ids, restaurant_id=restaurant.id
        ).select_related("category").using_db(conn)
        menu_map = {str(m.id): m for m in menu_items}

        lines = _resolve_lines(items, menu_map)
        if not lines:
            raise EmptyCart("None of the requested items can be ordered.")

        try:
            order = await Order.create(
                human_readable_id=generate_display_id(),
                restaurant=restaurant,
                table=table,
                customer_name=customer_name,
                customer_email=customer_email,
                notes=notes,
                status=OrderStatus.PENDING,
                payment_status=PaymentStatus.UNPAID,
                total_amount=Decimal("0"),
                using_db=conn
            )
        except IntegrityError as e:
            # Unique display id taken; the transaction is rolled back and retried
            raise _DisplayIdTaken() from e

        total = Decimal("0")
        for menu, qty in lines:
            line_total = menu.price * qty
            await OrderItem.create(
                order=order,
                menu_item=menu,
                quantity=qty,
                unit_price=menu.price,
                line_total=line_total,
                using_db=conn
            )

            if menu.is_stock_tracked:
                try:
                    await stock_ledger.decrement(menu.id, qty, order_id=order.id, conn=conn)
                except InsufficientStock as e:
                    if config.STOCK_FAILURE_POLICY != config.LENIENT:
                        raise
                    log.warning(f"Order {order.id} kept despite stock shortfall: {e.message}")

            total += line_total

        order.total_amount = total
        await order.save(update_fields=["total_amount", "updated_at"], using_db=conn)

        await publish_change(
            "order",
            "created",
            order.id,
            {
                "order_id": str(order.id),
                "human_readable_id": order.human_readable_id,
                "restaurant_id": str(restaurant.id),
                "table_number": table.table_number,
                "total_amount": str(total),
                "items": [{"menu_item_id": str(m.id), "quantity": q} for m, q in lines],
            },
            conn=conn
        )

    return order, lines


async def get_order_by_id(order_id: UUID) -> Optional[Order]:
    """Fetches order details with items, including the menu item name/price."""
    return await Order.get_or_none(id=order_id).prefetch_related("items", "items__menu_item", "table")


async def list_orders(restaurant_id: UUID) -> List[Order]:
    """All orders of a restaurant, newest first."""
    return await Order.filter(restaurant_id=restaurant_id).order_by("-created_at").prefetch_related(
        "items", "items__menu_item", "table", "payments"
    )


async def track_order(order_ref: str, email: str) -> Order:
    """
    Customer-facing lookup. Knowing both the order id (internal or display id)
    and the e-mail used to place it is the only credential required.
    """
    try:
        lookup = {"id": UUID(order_ref)}
    except ValueError:
        lookup = {"human_readable_id": order_ref.upper()}

    order = await Order.get_or_none(customer_email__iexact=email, **lookup).prefetch_related(
        "items", "items__menu_item", "table", "restaurant"
    )
    if not order:
        raise OrderNotFound("Order not found or access denied")
    return order


async def update_order_status(order_id: UUID, new_status: OrderStatus, actor_id: Optional[UUID]) -> Order:
    """
    Moves an order along the status graph. Moving to the current status is a
    successful no-op; anything off the graph raises IllegalTransition and
    leaves the order untouched.
    """
    order = await Order.get_or_none(id=order_id)
    if not order:
        raise OrderNotFound()
    actor = await authorize_for_restaurant(actor_id, order.restaurant_id)

    async with in_transaction() as conn:
        order = await Order.filter(id=order_id).using_db(conn).select_for_update().first()
        if not order:
            raise OrderNotFound()

        ensure_transition(order.status, new_status)
        if order.status == new_status:
            return order

        old_status = order.status
        now = timezone.now()
        order.status = new_status
        order.updated_by_name = actor.name
        if new_status == OrderStatus.IN_PROGRESS:
            order.preparation_started_at = now
        elif new_status == OrderStatus.COMPLETED:
            order.preparation_completed_at = now
        await order.save(using_db=conn)

        await publish_change(
            "order",
            "status_changed",
            order.id,
            {
                "order_id": str(order.id),
                "human_readable_id": order.human_readable_id,
                "old_status": OrderStatus(old_status).value,
                "new_status": new_status.value,
                "updated_by_name": actor.name,
            },
            conn=conn
        )

    await log_activity(
        order.restaurant_id,
        actor.id,
        "ORDER_STATUS_UPDATED",
        {"order_id": str(order.id), "old_status": OrderStatus(old_status).value, "new_status": new_status.value},
    )
    log.info(f"Order {order.id} moved {OrderStatus(old_status).value} -> {new_status.value} by {actor.name}")
    return order
