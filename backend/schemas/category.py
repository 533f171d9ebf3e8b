from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


# Fields shared by category create/update payloads
class CategoryBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    slug: Optional[str] = Field(default=None, max_length=100, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    image_url: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: Optional[str] = None
    sort_order: int = Field(default=0, ge=0)
    is_active: bool = True


# Slug is derived from the name when omitted
class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=100, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    image_url: Optional[str] = None
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: Optional[str] = None
    sort_order: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class CategoryOut(CategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    product_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Short form embedded in product responses
class CategoryRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str


class CategoryPage(BaseModel):
    items: List[CategoryOut]
    total: int
    page: int
    page_size: int
