import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from tortoise.exceptions import NoValuesFetched

from tableside.models.order import OrderStatus, PaymentStatus


class CamelModel(BaseModel):
    """Accepts both the camelCase keys the web clients send and snake_case."""
    model_config = ConfigDict(populate_by_name=True)


class OrderItemRequest(CamelModel):
    """Schema for a single item in the order request. Any client price is ignored."""
    menu_item_id: uuid.UUID = Field(..., alias="menuItemId")
    quantity: int = Field(..., ge=1)


class OrderRequest(CamelModel):
    """Schema for the full order placement request body."""
    restaurant_id: uuid.UUID = Field(..., alias="restaurantId")
    table_id: uuid.UUID = Field(..., alias="tableId")
    items: List[OrderItemRequest]
    customer_name: Optional[str] = Field(None, alias="customerName", max_length=255)
    customer_email: Optional[str] = Field(None, alias="customerEmail", max_length=255)
    notes: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    """Schema for updating an order status."""
    status: OrderStatus


class OrderItemResponse(BaseModel):
    """Schema for an item inside the detailed order response."""
    menu_item_id: uuid.UUID
    name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class OrderResponse(BaseModel):
    """Schema for order details."""
    id: uuid.UUID
    human_readable_id: str
    restaurant_id: uuid.UUID
    table_id: uuid.UUID
    table_number: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    notes: Optional[str] = None
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: Optional[str] = None
    total_amount: Decimal
    items: List[OrderItemResponse] = []
    preparation_started_at: Optional[datetime] = None
    preparation_completed_at: Optional[datetime] = None
    updated_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TrackedOrderResponse(OrderResponse):
    """Customer view of an order, with the restaurant name for display."""
    restaurant_name: Optional[str] = None


def _fetched(relation) -> list:
    try:
        return list(relation)
    except NoValuesFetched:
        return []


def build_order_response(order, response_cls=OrderResponse, **extra) -> OrderResponse:
    """Maps an Order (with whatever relations were prefetched) to its response schema."""
    items = [
        OrderItemResponse(
            menu_item_id=i.menu_item_id,
            name=getattr(i.menu_item, "name", None),
            quantity=i.quantity,
            unit_price=i.unit_price,
            line_total=i.line_total,
        )
        for i in _fetched(order.items)
    ]
    return response_cls(
        id=order.id,
        human_readable_id=order.human_readable_id,
        restaurant_id=order.restaurant_id,
        table_id=order.table_id,
        table_number=getattr(order.table, "table_number", None),
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        notes=order.notes,
        status=order.status,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        total_amount=order.total_amount,
        items=items,
        preparation_started_at=order.preparation_started_at,
        preparation_completed_at=order.preparation_completed_at,
        updated_by_name=order.updated_by_name,
        created_at=order.created_at,
        updated_at=order.updated_at,
        **extra,
    )
