import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query

from tableside.core.errors import DomainError
from tableside.models.restaurant import MenuItem
from tableside.schemas.inventory import StockLevelResponse
from tableside.schemas.response import SuccessResponse
from tableside.services.stock_ledger import get_stock, list_low_stock

log = logging.getLogger("tableside.api.inventory")

router = APIRouter()


def _stock_level(item: MenuItem) -> dict:
    return StockLevelResponse(
        menu_item_id=item.id,
        name=item.name,
        quantity_in_stock=item.quantity_in_stock,
        low_stock_threshold=item.low_stock_threshold,
        is_low=item.quantity_in_stock <= item.low_stock_threshold,
        updated_at=str(item.updated_at),
    ).model_dump(mode="json")


@router.get("/low-stock", response_model=SuccessResponse)
async def low_stock_endpoint(restaurant_id: UUID = Query(..., alias="restaurantId")):
    """Drinks at or below their low-stock threshold."""
    try:
        items = await list_low_stock(restaurant_id)
        return SuccessResponse(data=[_stock_level(i) for i in items])
    except Exception as e:
        log.error(f"Error fetching low stock items: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch low stock items")


@router.get("/{menu_item_id}", response_model=SuccessResponse)
async def get_stock_endpoint(menu_item_id: UUID):
    """Fetches the stock level of a specific menu item."""
    try:
        item = await get_stock(menu_item_id)
        return SuccessResponse(data=_stock_level(item))
    except DomainError:
        raise
    except Exception as e:
        log.error(f"Error fetching inventory: {e}")
        raise HTTPException(status_code=500, detail="Server failed to fetch inventory.")
