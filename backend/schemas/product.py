from decimal import Decimal
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List

from schemas.category import CategoryRef


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Shared base attributes for product entities
class ProductBase(ORMBase):
    name: str
    sku: str
    description: Optional[str] = None
    category_id: Optional[int] = None
    price: Decimal = Field(ge=0)
    cost_price: Optional[Decimal] = Field(default=None, ge=0)
    track_inventory: bool = True
    quantity: int = Field(default=0, ge=0)
    low_stock_alert: Optional[int] = Field(default=None, ge=0)
    is_available: bool = True
    image_url: Optional[str] = None


# Schema for creating a new product
class ProductCreate(ProductBase):
    pass


# Schema for partial product updates; stock changes go through /stock/adjust
class ProductEditRequest(ORMBase):
    name: Optional[str] = None
    sku: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[int] = None
    price: Optional[Decimal] = Field(None, ge=0)
    cost_price: Optional[Decimal] = Field(None, ge=0)
    track_inventory: Optional[bool] = None
    low_stock_alert: Optional[int] = Field(None, ge=0)
    is_available: Optional[bool] = None
    image_url: Optional[str] = None


class ProductOut(ProductBase):
    id: int
    category: Optional[CategoryRef] = None


# Paginated response for product listings
class ProductListPage(ORMBase):
    items: List[ProductOut]
    total: int
    page: int
    page_size: int
