from decimal import Decimal
from datetime import datetime
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional

from core.cart import DiscountType, OrderType
from core.lifecycle import PaymentMethod

# Request schema for adding a product to the cart
class CartAddItem(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)

# Request schema for setting an absolute quantity (0 removes the line)
class CartUpdateItem(BaseModel):
    quantity: int = Field(ge=0)

class CartItemNote(BaseModel):
    note: Optional[str] = Field(default=None, max_length=500)

class CartDiscount(BaseModel):
    value: Decimal = Field(ge=0)
    type: DiscountType = DiscountType.PERCENTAGE

    @model_validator(mode="after")
    def percentage_at_most_100(self):
        if self.type == DiscountType.PERCENTAGE and self.value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        return self

class CartTax(BaseModel):
    enabled: bool
    rate: Optional[Decimal] = Field(default=None, ge=0, le=1)

class CartOrderType(BaseModel):
    order_type: OrderType

class CustomerInfoIn(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    table_number: Optional[str] = None

class CartCharges(BaseModel):
    service_charge: Decimal = Field(default=Decimal("0"), ge=0)
    delivery_fee: Decimal = Field(default=Decimal("0"), ge=0)

# Response schema for a single cart line item
class CartItemOut(BaseModel):
    product_id: int
    name: str
    sku: Optional[str] = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    note: Optional[str] = None
    max_quantity: Optional[int] = None

# Response schema for the entire cart summary
class CartOut(BaseModel):
    items: List[CartItemOut]
    item_count: int
    order_type: OrderType
    customer: CustomerInfoIn
    discount_type: DiscountType
    discount_value: Decimal
    tax_enabled: bool
    tax_rate: Decimal
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    service_charge: Decimal
    delivery_fee: Decimal
    total: Decimal

class HeldOrderOut(BaseModel):
    id: str
    order_number: str
    held_at: datetime
    item_count: int
    total: Decimal

class CheckoutPayload(BaseModel):
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = None
