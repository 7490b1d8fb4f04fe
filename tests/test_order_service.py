import re
import uuid
from decimal import Decimal

import pytest

from tableside.core import config
from tableside.core.errors import (
    EmptyCart,
    IllegalTransition,
    InsufficientStock,
    ItemNotFound,
    ItemUnavailable,
    NotAuthenticated,
    NotAuthorized,
    OrderNotFound,
    RestaurantNotFound,
    TableNotFound,
)
from tableside.models.activity import ActivityLog
from tableside.models.order import Order, OrderItem, OrderStatus, PaymentStatus
from tableside.models.outbox import OutboxEvent
from tableside.models.restaurant import MenuItem
from tableside.services import order_service
from tableside.services.order_service import (
    generate_display_id,
    get_order_by_id,
    list_orders,
    place_order,
    track_order,
    update_order_status,
)


async def _place(catalog, items, **kwargs):
    return await place_order(
        restaurant_id=catalog.restaurant.id,
        table_id=catalog.table.id,
        items=items,
        customer_email=kwargs.pop("customer_email", "guest@example.com"),
        **kwargs,
    )


# --- Order Aggregate ---

@pytest.mark.asyncio
async def test_place_order_computes_total_and_decrements_drinks(catalog, cart):
    order = await _place(catalog, cart, notes="No onions")

    assert order.total_amount == Decimal("23.00")
    assert order.status == OrderStatus.PENDING
    assert order.payment_status == PaymentStatus.UNPAID
    assert re.fullmatch(r"[A-Z]{3}\d{4}", order.human_readable_id)

    lines = await OrderItem.filter(order_id=order.id)
    assert len(lines) == 2
    assert sum(line.unit_price * line.quantity for line in lines) == order.total_amount

    coke = await MenuItem.get(id=catalog.coke.id)
    burger = await MenuItem.get(id=catalog.burger.id)
    assert coke.quantity_in_stock == 9
    assert burger.quantity_in_stock == 0  # food is not stock-tracked


@pytest.mark.asyncio
async def test_place_order_records_notification_and_audit(catalog, cart):
    order = await _place(catalog, cart)

    event = await OutboxEvent.get(event_type="order.created.v1")
    assert event.payload["order_id"] == str(order.id)
    assert event.payload["table_number"] == "5"

    entry = await ActivityLog.get(action="ORDER_CREATED")
    assert entry.details["order_id"] == str(order.id)
    assert entry.details["item_count"] == 2


@pytest.mark.asyncio
async def test_unit_price_is_a_snapshot(catalog, cart):
    order = await _place(catalog, cart)

    catalog.burger.price = Decimal("99.00")
    await catalog.burger.save()

    reloaded = await get_order_by_id(order.id)
    assert reloaded.total_amount == Decimal("23.00")
    burger_line = [i for i in reloaded.items if i.menu_item_id == catalog.burger.id][0]
    assert burger_line.unit_price == Decimal("10.00")


@pytest.mark.asyncio
async def test_client_supplied_price_is_ignored(catalog):
    order = await _place(catalog, [{"menu_item_id": str(catalog.burger.id), "quantity": 1, "price": "0.01"}])
    assert order.total_amount == Decimal("10.00")


@pytest.mark.asyncio
async def test_empty_cart_is_rejected(catalog):
    with pytest.raises(EmptyCart):
        await _place(catalog, [])


@pytest.mark.asyncio
async def test_unknown_restaurant_or_table(catalog, cart):
    with pytest.raises(RestaurantNotFound):
        await place_order(uuid.uuid4(), catalog.table.id, cart)
    with pytest.raises(TableNotFound):
        await place_order(catalog.restaurant.id, uuid.uuid4(), cart)


@pytest.mark.asyncio
async def test_inactive_restaurant_cannot_take_orders(catalog, cart):
    catalog.restaurant.is_active = False
    await catalog.restaurant.save()

    with pytest.raises(RestaurantNotFound):
        await _place(catalog, cart)


@pytest.mark.asyncio
async def test_unknown_item_fails_the_whole_order(catalog, cart):
    with pytest.raises(ItemNotFound):
        await _place(catalog, cart + [{"menu_item_id": str(uuid.uuid4()), "quantity": 1}])

    assert await Order.all().count() == 0
    coke = await MenuItem.get(id=catalog.coke.id)
    assert coke.quantity_in_stock == 10


@pytest.mark.asyncio
async def test_unavailable_item_fails_the_whole_order(catalog, cart):
    with pytest.raises(ItemUnavailable):
        await _place(catalog, cart + [{"menu_item_id": str(catalog.fish.id), "quantity": 1}])
    assert await Order.all().count() == 0


@pytest.mark.asyncio
async def test_lenient_policy_skips_unavailable_lines(catalog, cart, monkeypatch):
    monkeypatch.setattr(config, "UNAVAILABLE_ITEM_POLICY", config.LENIENT)

    order = await _place(catalog, cart + [
        {"menu_item_id": str(catalog.fish.id), "quantity": 1},
        {"menu_item_id": str(uuid.uuid4()), "quantity": 1},
    ])

    assert order.total_amount == Decimal("23.00")
    assert await OrderItem.filter(order_id=order.id).count() == 2


@pytest.mark.asyncio
async def test_lenient_policy_with_nothing_orderable_is_an_empty_cart(catalog, monkeypatch):
    monkeypatch.setattr(config, "UNAVAILABLE_ITEM_POLICY", config.LENIENT)

    with pytest.raises(EmptyCart):
        await _place(catalog, [{"menu_item_id": str(catalog.fish.id), "quantity": 1}])


@pytest.mark.asyncio
async def test_insufficient_stock_rolls_back_the_order(catalog):
    items = [
        {"menu_item_id": str(catalog.burger.id), "quantity": 1},
        {"menu_item_id": str(catalog.coke.id), "quantity": 11},
    ]
    with pytest.raises(InsufficientStock):
        await _place(catalog, items)

    assert await Order.all().count() == 0
    assert await OrderItem.all().count() == 0
    coke = await MenuItem.get(id=catalog.coke.id)
    assert coke.quantity_in_stock == 10


@pytest.mark.asyncio
async def test_lenient_stock_policy_keeps_the_order(catalog, monkeypatch):
    monkeypatch.setattr(config, "STOCK_FAILURE_POLICY", config.LENIENT)

    order = await _place(catalog, [{"menu_item_id": str(catalog.coke.id), "quantity": 11}])

    assert order.total_amount == Decimal("33.00")
    coke = await MenuItem.get(id=catalog.coke.id)
    assert coke.quantity_in_stock == 10


def test_display_id_format():
    assert re.fullmatch(r"[A-Z]{3}\d{4}", generate_display_id())


@pytest.mark.asyncio
async def test_display_id_collision_retries_with_a_fresh_id(catalog, cart, monkeypatch):
    first = await _place(catalog, cart)
    candidates = iter([first.human_readable_id, "ZZZ9999"])
    monkeypatch.setattr(order_service, "generate_display_id", lambda: next(candidates))

    second = await _place(catalog, cart)

    assert second.human_readable_id == "ZZZ9999"
    assert await Order.all().count() == 2
    # The rolled back attempt must not have touched stock
    coke = await MenuItem.get(id=catalog.coke.id)
    assert coke.quantity_in_stock == 8


@pytest.mark.asyncio
async def test_display_id_collisions_give_up_after_bounded_attempts(catalog, cart, monkeypatch):
    first = await _place(catalog, cart)
    monkeypatch.setattr(order_service, "generate_display_id", lambda: first.human_readable_id)

    with pytest.raises(RuntimeError):
        await _place(catalog, cart)

    assert await Order.all().count() == 1
    assert await OrderItem.all().count() == 2
    coke = await MenuItem.get(id=catalog.coke.id)
    assert coke.quantity_in_stock == 9


# --- Reads ---

@pytest.mark.asyncio
async def test_list_orders_newest_first(catalog, cart):
    first = await _place(catalog, cart)
    second = await _place(catalog, cart)

    orders = await list_orders(catalog.restaurant.id)
    assert {o.id for o in orders} == {first.id, second.id}
    assert await list_orders(catalog.other_restaurant.id) == []


@pytest.mark.asyncio
async def test_track_order_by_id_or_display_id(catalog, cart):
    order = await _place(catalog, cart, customer_email="Guest@Example.com")

    by_id = await track_order(str(order.id), "guest@example.com")
    by_display_id = await track_order(order.human_readable_id.lower(), "GUEST@example.com")

    assert by_id.id == order.id
    assert by_display_id.id == order.id
    assert by_id.restaurant.name == "Chez Kofi"
    assert len(list(by_id.items)) == 2


@pytest.mark.asyncio
async def test_track_order_with_wrong_email_is_not_found(catalog, cart):
    order = await _place(catalog, cart)

    with pytest.raises(OrderNotFound):
        await track_order(str(order.id), "someone.else@example.com")


# --- Order State Machine ---

@pytest.mark.asyncio
async def test_kitchen_walks_order_to_completion(catalog, cart):
    order = await _place(catalog, cart)

    in_progress = await update_order_status(order.id, OrderStatus.IN_PROGRESS, catalog.staff.id)
    assert in_progress.status == OrderStatus.IN_PROGRESS
    assert in_progress.preparation_started_at is not None
    assert in_progress.updated_by_name == "Kojo Kitchen"

    completed = await update_order_status(order.id, OrderStatus.COMPLETED, catalog.admin.id)
    assert completed.status == OrderStatus.COMPLETED
    assert completed.preparation_completed_at is not None
    assert completed.updated_by_name == "Ama Admin"

    assert await ActivityLog.filter(action="ORDER_STATUS_UPDATED").count() == 2
    assert await OutboxEvent.filter(event_type="order.status_changed.v1").count() == 2


@pytest.mark.asyncio
async def test_completed_order_cannot_go_back(catalog, cart):
    order = await _place(catalog, cart)
    await update_order_status(order.id, OrderStatus.IN_PROGRESS, catalog.staff.id)
    await update_order_status(order.id, OrderStatus.COMPLETED, catalog.staff.id)

    with pytest.raises(IllegalTransition):
        await update_order_status(order.id, OrderStatus.IN_PROGRESS, catalog.staff.id)

    reloaded = await Order.get(id=order.id)
    assert reloaded.status == OrderStatus.COMPLETED


@pytest.mark.asyncio
async def test_same_status_is_a_silent_no_op(catalog, cart):
    order = await _place(catalog, cart)

    result = await update_order_status(order.id, OrderStatus.PENDING, catalog.staff.id)

    assert result.status == OrderStatus.PENDING
    assert result.updated_by_name is None
    assert await ActivityLog.filter(action="ORDER_STATUS_UPDATED").count() == 0


@pytest.mark.asyncio
async def test_super_admin_may_cancel_any_order(catalog, cart):
    order = await _place(catalog, cart)

    cancelled = await update_order_status(order.id, OrderStatus.CANCELLED, catalog.super_admin.id)
    assert cancelled.status == OrderStatus.CANCELLED


@pytest.mark.asyncio
async def test_status_update_requires_an_authorized_actor(catalog, cart):
    order = await _place(catalog, cart)

    with pytest.raises(NotAuthenticated):
        await update_order_status(order.id, OrderStatus.IN_PROGRESS, None)
    with pytest.raises(NotAuthorized):
        await update_order_status(order.id, OrderStatus.IN_PROGRESS, catalog.outsider.id)

    reloaded = await Order.get(id=order.id)
    assert reloaded.status == OrderStatus.PENDING


@pytest.mark.asyncio
async def test_status_update_for_unknown_order(catalog):
    with pytest.raises(OrderNotFound):
        await update_order_status(uuid.uuid4(), OrderStatus.IN_PROGRESS, catalog.staff.id)
