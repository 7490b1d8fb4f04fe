import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from tableside.api.deps import get_actor_id
from tableside.core.errors import DomainError
from tableside.schemas.order import OrderRequest, OrderStatusUpdate, build_order_response
from tableside.schemas.payment import PaymentResponse
from tableside.schemas.response import SuccessResponse
from tableside.services.order_service import get_order_by_id, list_orders, place_order, update_order_status
from tableside.services.payment_service import mark_paid_cash

router = APIRouter()
log = logging.getLogger("tableside.api.orders")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_order_endpoint(request_data: OrderRequest):
    """
    Places a new order from a table's cart. Prices are taken from the menu.
    """
    try:
        items_data = [
            {"menu_item_id": str(item.menu_item_id), "quantity": item.quantity}
            for item in request_data.items
        ]

        order = await place_order(
            restaurant_id=request_data.restaurant_id,
            table_id=request_data.table_id,
            items=items_data,
            customer_name=request_data.customer_name,
            customer_email=request_data.customer_email,
            notes=request_data.notes,
        )
        data = build_order_response(order).model_dump(mode="json")
        return SuccessResponse(data=data, message="Order placed successfully.")
    except DomainError as e:
        log.error(f"Order placement rejected: {e.message}")
        raise
    except Exception as e:
        log.error(f"Error placing order: {e}")
        raise HTTPException(status_code=500, detail="Failed to create order. Please try again.")


@router.get("", response_model=SuccessResponse)
async def list_orders_endpoint(restaurant_id: UUID = Query(..., alias="restaurantId")):
    """Lists a restaurant's orders, newest first."""
    try:
        orders = await list_orders(restaurant_id)
        data = [build_order_response(o).model_dump(mode="json") for o in orders]
        return SuccessResponse(data=data)
    except Exception as e:
        log.error(f"Error fetching orders for restaurant {restaurant_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch orders")


@router.get("/{order_id}", response_model=SuccessResponse)
async def get_order_endpoint(order_id: UUID):
    """Fetches details for a specific order."""
    try:
        order = await get_order_by_id(order_id)
    except Exception as e:
        log.error(f"Error fetching order {order_id}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to fetch order details.")

    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return SuccessResponse(data=build_order_response(order).model_dump(mode="json"))


@router.put("/{order_id}", response_model=SuccessResponse)
async def update_status_endpoint(
    order_id: UUID,
    payload: OrderStatusUpdate,
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    """
    Moves an order along Pending -> In-Progress -> Completed, or cancels it.
    """
    try:
        order = await update_order_status(order_id, payload.status, actor_id)
        data = build_order_response(order).model_dump(mode="json")
        return SuccessResponse(data=data, message=f"Order status is {order.status.value}")
    except DomainError as e:
        log.error(f"Status update for order {order_id} rejected: {e.message}")
        raise
    except Exception as e:
        log.error(f"Error updating order status: {e}")
        raise HTTPException(status_code=500, detail="Failed to update order")


@router.post("/{order_id}/mark-paid", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def mark_paid_endpoint(order_id: UUID, actor_id: Optional[UUID] = Depends(get_actor_id)):
    """Records a cash payment taken at the counter."""
    try:
        payment = await mark_paid_cash(order_id, actor_id)
        data = PaymentResponse(
            id=payment.id,
            order_id=payment.order_id,
            provider=payment.provider,
            status=payment.status,
            amount=payment.amount,
            reference=payment.reference,
            method=payment.method,
            created_at=payment.created_at,
        ).model_dump(mode="json")
        return SuccessResponse(data=data, message="Cash payment recorded.")
    except DomainError as e:
        log.error(f"Cash payment for order {order_id} rejected: {e.message}")
        raise
    except Exception as e:
        log.error(f"Error recording cash payment: {e}")
        raise HTTPException(status_code=500, detail="Failed to record cash payment")
