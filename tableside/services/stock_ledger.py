import logging
from typing import Any, List, Optional
from uuid import UUID

from tortoise.expressions import F

from tableside.core.errors import InsufficientStock, InvalidQuantity, ItemNotFound
from tableside.events.outbox_utility import publish_change
from tableside.models.restaurant import CategoryType, MenuItem

log = logging.getLogger("tableside.stock")


async def check_for_low_stock(item: MenuItem, order_id: Optional[UUID], conn: Any = None):
    """Emits a low stock alert when the remaining stock is at or below the item's threshold."""
    if item.quantity_in_stock <= item.low_stock_threshold:
        log.warning(f"Low stock detected for item {item.id}: {item.quantity_in_stock} left")
        await publish_change(
            "inventory",
            "low_stock_alert",
            item.id,
            {
                "menu_item_id": str(item.id),
                "restaurant_id": str(item.restaurant_id),
                "name": item.name,
                "quantity_in_stock": item.quantity_in_stock,
                "threshold": item.low_stock_threshold,
                "triggered_by_order_id": str(order_id) if order_id else None,
            },
            conn=conn,
        )


async def decrement(menu_item_id: UUID, quantity: int, order_id: Optional[UUID] = None, conn: Any = None) -> int:
    """
    Takes ``quantity`` units out of stock and returns what is left.

    The decrement is one conditional UPDATE evaluated by the database, so two
    concurrent orders for the same item can never both take the last unit and
    the stock can never go below zero.
    """
    if quantity < 1:
        raise InvalidQuantity(f"Quantity must be at least 1, got {quantity}.")

    updated = await MenuItem.filter(
        id=menu_item_id, quantity_in_stock__gte=quantity
    ).using_db(conn).update(quantity_in_stock=F("quantity_in_stock") - quantity)

    if not updated:
        item = await MenuItem.get_or_none(id=menu_item_id).using_db(conn)
        if not item:
            raise ItemNotFound(f"Menu item {menu_item_id} not found.")
        raise InsufficientStock(
            f"Insufficient stock for {item.name}. Requested: {quantity}, Available: {item.quantity_in_stock}",
            details={"menu_item_id": str(menu_item_id), "requested": quantity, "available": item.quantity_in_stock},
        )

    item = await MenuItem.get(id=menu_item_id).using_db(conn)
    await check_for_low_stock(item, order_id, conn)
    return item.quantity_in_stock


async def get_stock(menu_item_id: UUID) -> MenuItem:
    """Fetches a menu item with its stock level."""
    item = await MenuItem.get_or_none(id=menu_item_id).select_related("category")
    if not item:
        raise ItemNotFound(f"Menu item {menu_item_id} not found.")
    return item


async def list_low_stock(restaurant_id: UUID) -> List[MenuItem]:
    """Stock-tracked items of a restaurant that are at or below their threshold."""
    return await MenuItem.filter(
        restaurant_id=restaurant_id,
        category__type=CategoryType.DRINK,
        quantity_in_stock__lte=F("low_stock_threshold"),
    ).order_by("quantity_in_stock")
