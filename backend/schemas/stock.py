# backend/schemas/stock.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import List, Optional, Literal

# Define allowed types for stock movements
StockMovementType = Literal["IN", "OUT", "ADJUSTMENT", "LOSS"]

# Schema for a manual stock change; qty is signed
class StockMovementCreate(BaseModel):
    product_id: int
    qty: int = Field(alias="quantity_change")
    reason: Optional[str] = None
    type: StockMovementType

    model_config = ConfigDict(populate_by_name=True)

# Schema for returning stock movement details
class StockMovementResponse(BaseModel):
    id: int
    created_at: Optional[datetime] = None
    product_id: int
    product_name: str
    product_sku: str
    type: str
    qty: int
    previous_stock: int
    current_stock: int
    reason: Optional[str] = None
    reference_type: Optional[str] = None
    reference_id: Optional[str] = None
    user_id: Optional[int] = None
    user_email: Optional[str] = None

# Paginated response for stock movement history
class StockMovementPage(BaseModel):
    items: List[StockMovementResponse]
    total: int
    page: int
    page_size: int
