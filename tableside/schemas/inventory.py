import uuid
from pydantic import BaseModel


class StockLevelResponse(BaseModel):
    """Schema for fetching a menu item's stock."""
    menu_item_id: uuid.UUID
    name: str
    quantity_in_stock: int
    low_stock_threshold: int
    is_low: bool
    updated_at: str
