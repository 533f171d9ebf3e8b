from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

from core.cart import OrderType
from core.lifecycle import OrderStatus, PaymentMethod, PaymentStatus


# Output schema for an individual order line item
class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: Optional[int] = None
    product_name: str
    product_sku: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    notes: Optional[str] = None


# Output schema representing the full order details
class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    order_type: OrderType
    status: OrderStatus
    cashier_id: Optional[int] = None

    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    customer_address: Optional[str] = None
    table_number: Optional[str] = None

    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    service_charge: Decimal
    delivery_fee: Decimal
    total_amount: Decimal

    payment_method: Optional[PaymentMethod] = None
    payment_status: PaymentStatus
    paid_amount: Optional[Decimal] = None
    change_amount: Optional[Decimal] = None

    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    cancellation_reason: Optional[str] = None

    created_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    preparing_at: Optional[datetime] = None
    ready_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None

    items: List[OrderItemOut]


# Schema for paginated order lists
class OrdersPage(BaseModel):
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int


# Schema for updating order status
class OrderStatusPatch(BaseModel):
    status: OrderStatus
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None


class OrderCancel(BaseModel):
    reason: str
    notes: Optional[str] = None


# Cash handed over at the counter
class ConfirmPaymentPayload(BaseModel):
    paid_amount: Decimal = Field(gt=0)
    change_amount: Optional[Decimal] = Field(default=None, ge=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = None


class TransitionsOut(BaseModel):
    status: OrderStatus
    available: List[OrderStatus]


# Result of turning the cart into an order
class CheckoutResponse(BaseModel):
    order: OrderResponse
    requires_redirect: bool
