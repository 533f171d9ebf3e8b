# backend/core/checkout.py
"""Held orders and conversion of a cart into an ``Order``."""
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from core.cart import Cart
from core.errors import ValidationError
from core.lifecycle import OrderStatus, PaymentMethod, PaymentStatus
from core.order_number import generate_order_number
from core.rbac import Actor, Permission, require_permission
from models.order import Order, OrderItem

OrderNumberFactory = Callable[[], str]


@dataclass
class HeldOrder:
    id: str
    cart: Cart
    held_at: datetime
    order_number: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "cart": self.cart.to_dict(),
            "held_at": self.held_at.isoformat(),
            "order_number": self.order_number,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HeldOrder":
        return cls(
            id=data["id"],
            cart=Cart.from_dict(data["cart"]),
            held_at=datetime.fromisoformat(data["held_at"]),
            order_number=data["order_number"],
        )


@dataclass
class PaymentInfo:
    method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = None


@dataclass
class CheckoutResult:
    order: Order
    # True when payment continues at an external gateway
    requires_redirect: bool


def _ensure_not_empty(cart: Cart, action: str) -> None:
    if cart.is_empty:
        raise ValidationError(f"Cannot {action} an empty cart", ["items"])


def hold_cart(
    cart: Cart,
    order_number_factory: OrderNumberFactory = generate_order_number,
    now: Optional[datetime] = None,
) -> HeldOrder:
    """Snapshot ``cart`` for later recall. The source cart is left as is."""
    _ensure_not_empty(cart, "hold")
    return HeldOrder(
        id=f"held-{uuid.uuid4().hex}",
        cart=cart.snapshot(),
        held_at=now or datetime.now(timezone.utc),
        order_number=order_number_factory(),
    )


def recall_held_order(held: HeldOrder) -> Cart:
    return held.cart.snapshot()


def checkout(
    cart: Cart,
    payment: PaymentInfo,
    order_number_factory: OrderNumberFactory = generate_order_number,
    actor: Optional[Actor] = None,
    now: Optional[datetime] = None,
) -> CheckoutResult:
    """Freeze the cart into a new ``Order``.

    Cash orders wait at the counter (AWAITING_CONFIRMATION); every other
    method is handed to the payment gateway (PENDING_PAYMENT). Stock is not
    touched here, it is deducted when the order is paid.
    """
    require_permission(actor, Permission.ORDER_CREATE)
    _ensure_not_empty(cart, "check out")

    missing = cart.customer.missing_fields(cart.order_type)
    if missing:
        raise ValidationError(
            "Customer information required for delivery: " + ", ".join(missing), missing,
        )

    cart.recompute_totals()
    method = PaymentMethod(payment.method)
    is_cash = method == PaymentMethod.CASH
    customer = cart.customer

    order = Order(
        order_number=order_number_factory(),
        order_type=cart.order_type,
        status=OrderStatus.AWAITING_CONFIRMATION if is_cash else OrderStatus.PENDING_PAYMENT,
        cashier_id=actor.user_id if actor else None,
        customer_name=customer.name,
        customer_phone=customer.phone,
        customer_email=customer.email,
        customer_address=customer.address,
        table_number=customer.table_number,
        subtotal=cart.subtotal,
        discount_type=cart.discount_type,
        discount_value=cart.discount_value,
        discount_amount=cart.discount_amount,
        tax_rate=cart.tax_rate if cart.tax_enabled else None,
        tax_amount=cart.tax_amount,
        service_charge=cart.service_charge,
        delivery_fee=cart.applied_delivery_fee,
        total_amount=cart.total,
        payment_method=method,
        payment_status=PaymentStatus.PENDING,
        stock_deducted=False,
        notes=payment.notes,
        created_at=now or datetime.now(timezone.utc),
    )
    order.items = [
        OrderItem(
            product_id=item.product_id,
            product_name=item.name,
            product_sku=item.sku,
            quantity=item.quantity,
            unit_price=item.unit_price,
            subtotal=item.line_total,
            notes=item.note,
        )
        for item in cart.items
    ]
    return CheckoutResult(order=order, requires_redirect=not is_cash)
