# backend/core/lifecycle.py
"""Order status state machine.

The allowed moves live in ``TRANSITIONS`` and nowhere else; both the
validation in ``transition`` and the UI query ``available_transitions``
read from it. Functions operate on any object exposing the order
attributes (the SQLAlchemy ``models.order.Order`` in practice) and assume
the caller holds a row lock on it.
"""
import enum
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Optional

from core.cart import to_money
from core.errors import InsufficientPaymentError, InvalidTransitionError, ValidationError
from core.rbac import Actor, Permission, require_permission


class OrderStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PENDING_PAYMENT = "PENDING_PAYMENT"
    AWAITING_CONFIRMATION = "AWAITING_CONFIRMATION"
    PAID = "PAID"
    PREPARING = "PREPARING"
    READY = "READY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    QRIS = "QRIS"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    E_WALLET = "E_WALLET"
    OTHER = "OTHER"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    EXPIRED = "EXPIRED"
    REFUNDED = "REFUNDED"


TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.DRAFT: frozenset({OrderStatus.PENDING_PAYMENT, OrderStatus.CANCELLED}),
    OrderStatus.PENDING_PAYMENT: frozenset({
        OrderStatus.AWAITING_CONFIRMATION, OrderStatus.PAID, OrderStatus.CANCELLED,
    }),
    OrderStatus.AWAITING_CONFIRMATION: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
}

TIMESTAMP_FIELDS: Dict[OrderStatus, str] = {
    OrderStatus.PAID: "paid_at",
    OrderStatus.PREPARING: "preparing_at",
    OrderStatus.READY: "ready_at",
    OrderStatus.COMPLETED: "completed_at",
    OrderStatus.CANCELLED: "cancelled_at",
    OrderStatus.REFUNDED: "refunded_at",
}

# Statuses in which the order still waits for money
AWAITING_PAYMENT = frozenset({
    OrderStatus.DRAFT, OrderStatus.PENDING_PAYMENT, OrderStatus.AWAITING_CONFIRMATION,
})


def available_transitions(status) -> FrozenSet[OrderStatus]:
    return TRANSITIONS[OrderStatus(status)]


def can_transition(current, target) -> bool:
    return OrderStatus(target) in available_transitions(current)


def is_terminal(status) -> bool:
    return not available_transitions(status)


def _required_permission(target: OrderStatus) -> Permission:
    if target == OrderStatus.CANCELLED:
        return Permission.ORDER_CANCEL
    if target == OrderStatus.REFUNDED:
        return Permission.ORDER_REFUND
    return Permission.ORDER_UPDATE


def _append_note(existing: Optional[str], note: str) -> str:
    return f"{existing}\n{note}" if existing else note


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _plan_transition(order, target: OrderStatus, notes, cancellation_reason, now) -> dict:
    current = OrderStatus(order.status)
    if target not in TRANSITIONS[current]:
        raise InvalidTransitionError(current, target)

    changes = {"status": target, "updated_at": now}
    field = TIMESTAMP_FIELDS.get(target)
    if field and getattr(order, field, None) is None:
        changes[field] = now
    if target == OrderStatus.CANCELLED and cancellation_reason:
        changes["cancellation_reason"] = cancellation_reason
    if target == OrderStatus.PAID:
        changes["payment_status"] = PaymentStatus.COMPLETED
    if target == OrderStatus.REFUNDED:
        changes["payment_status"] = PaymentStatus.REFUNDED
    if notes:
        changes["internal_notes"] = _append_note(order.internal_notes, f"[{target.value}] {notes}")
    return changes


def _apply(order, changes: dict):
    for key, value in changes.items():
        setattr(order, key, value)
    return order


def transition(
    order,
    target,
    *,
    notes: Optional[str] = None,
    cancellation_reason: Optional[str] = None,
    actor: Optional[Actor] = None,
    now: Optional[datetime] = None,
):
    """Move ``order`` to ``target`` if the table allows it.

    Sets the timestamp matching the new status the first time it is entered
    and records notes / cancellation reason. Raises ``InvalidTransitionError``
    without touching the order when the move is not allowed.
    """
    target = OrderStatus(target)
    require_permission(actor, _required_permission(target))
    changes = _plan_transition(order, target, notes, cancellation_reason, now or _now())
    return _apply(order, changes)


def cancel(
    order,
    reason: Optional[str],
    *,
    notes: Optional[str] = None,
    actor: Optional[Actor] = None,
    now: Optional[datetime] = None,
):
    if not reason or not reason.strip():
        raise ValidationError("Cancellation reason is required", ["reason"])
    return transition(
        order, OrderStatus.CANCELLED, notes=notes, cancellation_reason=reason.strip(), actor=actor, now=now,
    )


def confirm_cash_payment(
    order,
    paid_amount,
    change_amount=None,
    method: PaymentMethod = PaymentMethod.CASH,
    notes: Optional[str] = None,
    *,
    actor: Optional[Actor] = None,
    now: Optional[datetime] = None,
):
    """Record an in-person payment and move the order to PAID."""
    require_permission(actor, Permission.PAYMENT_VERIFY)
    now = now or _now()
    changes = _plan_transition(order, OrderStatus.PAID, notes, None, now)

    total = to_money(order.total_amount)
    paid = to_money(paid_amount)
    if paid < total:
        raise InsufficientPaymentError(total, paid)

    change = paid - total if change_amount is None else to_money(change_amount)
    if change < 0:
        raise ValidationError("Change amount cannot be negative", ["change_amount"])

    changes.update(
        paid_amount=paid,
        change_amount=change,
        payment_method=PaymentMethod(method or PaymentMethod.CASH),
    )
    return _apply(order, changes)


PAYMENT_EXPIRED_REASON = "Payment expired - exceeded {minutes} minute time limit"


def expire_payment(order, minutes: int, *, now: Optional[datetime] = None):
    """Cancel a gateway order whose payment window ran out."""
    transition(
        order, OrderStatus.CANCELLED,
        cancellation_reason=PAYMENT_EXPIRED_REASON.format(minutes=minutes), now=now,
    )
    order.payment_status = PaymentStatus.EXPIRED
    return order
