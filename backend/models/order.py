# backend/models/order.py
from sqlalchemy import (
    Column, Integer, String, Numeric, ForeignKey, DateTime, Text, Boolean, Enum, func,
)
from sqlalchemy import inspect
from sqlalchemy.orm import relationship, validates
from database import Base
from core.cart import DiscountType, OrderType
from core.errors import FrozenAmountError
from core.lifecycle import OrderStatus, PaymentMethod, PaymentStatus

# Monetary breakdown frozen at checkout
FROZEN_AMOUNT_FIELDS = (
    "subtotal", "discount_amount", "tax_amount", "service_charge", "delivery_fee", "total_amount",
)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(40), unique=True, nullable=False, index=True)
    order_type = Column(Enum(OrderType), nullable=False, default=OrderType.DINE_IN)
    status = Column(Enum(OrderStatus), nullable=False, default=OrderStatus.DRAFT, index=True)
    cashier_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # Customer details
    customer_name = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)
    customer_email = Column(String, nullable=True)
    customer_address = Column(String, nullable=True)
    table_number = Column(String, nullable=True)

    # Amounts
    subtotal = Column(Numeric(12, 2), nullable=False)
    discount_type = Column(Enum(DiscountType), nullable=True)
    discount_value = Column(Numeric(12, 2), nullable=True)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    tax_rate = Column(Numeric(5, 4), nullable=True)
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    service_charge = Column(Numeric(12, 2), nullable=False, default=0)
    delivery_fee = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)

    # Payment
    payment_method = Column(Enum(PaymentMethod), nullable=True)
    payment_status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    paid_amount = Column(Numeric(12, 2), nullable=True)
    change_amount = Column(Numeric(12, 2), nullable=True)
    gateway_reference = Column(String, nullable=True)
    stock_deducted = Column(Boolean, nullable=False, default=False)

    notes = Column(Text, nullable=True)
    internal_notes = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    # Status timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    preparing_at = Column(DateTime(timezone=True), nullable=True)
    ready_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    refunded_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    cashier = relationship("User")

    # Amounts are set once, before the order is first flushed
    @validates(*FROZEN_AMOUNT_FIELDS)
    def _freeze_amounts(self, key, value):
        current = self.__dict__.get(key)
        if inspect(self).has_identity or (current is not None and value != current):
            raise FrozenAmountError(key)
        return value


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)

    # Copies of catalog data at checkout time
    product_name = Column(String, nullable=False)
    product_sku = Column(String, nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    notes = Column(Text, nullable=True)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
