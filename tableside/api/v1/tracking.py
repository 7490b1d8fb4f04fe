import logging

from fastapi import APIRouter, HTTPException, Query

from tableside.core.errors import DomainError
from tableside.schemas.order import TrackedOrderResponse, build_order_response
from tableside.schemas.response import SuccessResponse
from tableside.services.order_service import track_order

router = APIRouter()
log = logging.getLogger("tableside.api.tracking")


@router.get("", response_model=SuccessResponse)
async def track_order_endpoint(
    order_id: str = Query(..., alias="orderId", min_length=1),
    email: str = Query(..., min_length=1),
):
    """
    Customer order tracking. The order id (or its short display id) together
    with the e-mail it was placed with is the credential; no session needed.
    """
    try:
        order = await track_order(order_id, email)
        restaurant_name = getattr(order.restaurant, "name", None)
        data = build_order_response(
            order, response_cls=TrackedOrderResponse, restaurant_name=restaurant_name
        ).model_dump(mode="json")
        return SuccessResponse(data=data)
    except DomainError as e:
        log.info(f"Tracking lookup failed for order {order_id}: {e.message}")
        raise
    except Exception as e:
        log.error(f"API error during order tracking: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
