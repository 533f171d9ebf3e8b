from datetime import datetime, timezone
from decimal import Decimal
from itertools import product

import pytest

from core.cart import Cart, ProductInfo
from core.checkout import PaymentInfo, checkout
from core.errors import (
    InsufficientPaymentError, InvalidTransitionError, PermissionDeniedError, ValidationError,
)
from core.lifecycle import (
    TRANSITIONS, OrderStatus, PaymentMethod, PaymentStatus,
    available_transitions, can_transition, cancel, confirm_cash_payment, expire_payment, is_terminal, transition,
)
from core.rbac import Actor, Role

NOW = datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc)


def make_order(status=OrderStatus.AWAITING_CONFIRMATION, price="50000"):
    cart = Cart(tax_rate=Decimal("0"), tax_enabled=False)
    cart.add_item(ProductInfo(id=1, name="Ayam Bakar", price=Decimal(price)))
    order = checkout(cart, PaymentInfo(method=PaymentMethod.CASH)).order
    order.status = status
    return order


def test_table_service_path():
    order = make_order(OrderStatus.DRAFT)
    for target in (
        OrderStatus.PENDING_PAYMENT,
        OrderStatus.AWAITING_CONFIRMATION,
        OrderStatus.PAID,
        OrderStatus.PREPARING,
        OrderStatus.READY,
        OrderStatus.COMPLETED,
    ):
        transition(order, target, now=NOW)
        assert order.status == target

    assert order.paid_at == NOW
    assert order.preparing_at == NOW
    assert order.ready_at == NOW
    assert order.completed_at == NOW
    assert order.payment_status == PaymentStatus.COMPLETED


def test_rejected_transition_leaves_order_untouched():
    order = make_order(OrderStatus.PAID)

    with pytest.raises(InvalidTransitionError) as exc:
        transition(order, OrderStatus.COMPLETED, notes="skip ahead")

    assert exc.value.current == OrderStatus.PAID
    assert order.status == OrderStatus.PAID
    assert order.completed_at is None
    assert order.internal_notes is None


@pytest.mark.parametrize("current, target", list(product(OrderStatus, OrderStatus)))
def test_every_status_pair_follows_the_table(current, target):
    order = make_order(current)

    if target in TRANSITIONS[current]:
        transition(order, target, now=NOW)
        assert order.status == target
    else:
        with pytest.raises(InvalidTransitionError):
            transition(order, target, notes="not allowed", now=NOW)
        assert order.status == current
        assert order.internal_notes is None


def test_pending_payment_cannot_jump_to_ready():
    order = make_order(OrderStatus.PENDING_PAYMENT)

    with pytest.raises(InvalidTransitionError):
        transition(order, OrderStatus.READY)
    assert order.status == OrderStatus.PENDING_PAYMENT
    assert order.ready_at is None


def test_terminal_statuses():
    assert is_terminal(OrderStatus.CANCELLED)
    assert is_terminal(OrderStatus.REFUNDED)
    assert not is_terminal(OrderStatus.COMPLETED)
    assert available_transitions(OrderStatus.COMPLETED) == {OrderStatus.REFUNDED}


def test_refund_only_from_completed():
    assert not can_transition(OrderStatus.PAID, OrderStatus.REFUNDED)

    order = make_order(OrderStatus.COMPLETED)
    transition(order, OrderStatus.REFUNDED, now=NOW)

    assert order.refunded_at == NOW
    assert order.payment_status == PaymentStatus.REFUNDED


def test_timestamp_is_set_only_once():
    earlier = datetime(2026, 1, 1, tzinfo=timezone.utc)
    order = make_order(OrderStatus.PENDING_PAYMENT)
    order.paid_at = earlier

    transition(order, OrderStatus.PAID, now=NOW)

    assert order.paid_at == earlier
    assert order.updated_at == NOW


def test_notes_are_appended_with_status_prefix():
    order = make_order(OrderStatus.PAID)
    transition(order, OrderStatus.PREPARING, notes="table 4")
    transition(order, OrderStatus.READY, notes="at the pass")

    assert order.internal_notes == "[PREPARING] table 4\n[READY] at the pass"


def test_cancel_requires_reason():
    order = make_order()

    with pytest.raises(ValidationError):
        cancel(order, "")
    with pytest.raises(ValidationError):
        cancel(order, "   ")

    assert order.status == OrderStatus.AWAITING_CONFIRMATION


def test_cancel_records_reason_and_time():
    order = make_order(OrderStatus.READY)
    cancel(order, " customer left ", now=NOW)

    assert order.status == OrderStatus.CANCELLED
    assert order.cancellation_reason == "customer left"
    assert order.cancelled_at == NOW


def test_cancel_keeps_notes():
    order = make_order(OrderStatus.PAID)
    cancel(order, "kitchen closed", notes="called the customer", now=NOW)

    assert order.cancellation_reason == "kitchen closed"
    assert order.internal_notes == "[CANCELLED] called the customer"


def test_expire_payment():
    order = make_order(OrderStatus.PENDING_PAYMENT)
    expire_payment(order, 10, now=NOW)

    assert order.status == OrderStatus.CANCELLED
    assert order.payment_status == PaymentStatus.EXPIRED
    assert order.cancellation_reason == "Payment expired - exceeded 10 minute time limit"
    assert order.cancelled_at == NOW


def test_expire_paid_order_is_invalid():
    order = make_order(OrderStatus.PAID)
    with pytest.raises(InvalidTransitionError):
        expire_payment(order, 10)
    assert order.payment_status != PaymentStatus.EXPIRED


def test_cancel_completed_order_is_invalid():
    order = make_order(OrderStatus.COMPLETED)
    with pytest.raises(InvalidTransitionError):
        cancel(order, "too late")


def test_insufficient_cash_rejected():
    order = make_order(price="50000")

    with pytest.raises(InsufficientPaymentError) as exc:
        confirm_cash_payment(order, Decimal("40000"))

    assert exc.value.shortage == Decimal("10000.00")
    assert order.status == OrderStatus.AWAITING_CONFIRMATION
    assert order.paid_amount is None


def test_cash_payment_computes_change():
    order = make_order(price="50000")
    confirm_cash_payment(order, Decimal("100000"), notes="exact bill", now=NOW)

    assert order.status == OrderStatus.PAID
    assert order.paid_amount == Decimal("100000.00")
    assert order.change_amount == Decimal("50000.00")
    assert order.payment_method == PaymentMethod.CASH
    assert order.payment_status == PaymentStatus.COMPLETED
    assert order.paid_at == NOW
    assert "[PAID] exact bill" in order.internal_notes


def test_cash_payment_with_explicit_change():
    order = make_order(price="50000")
    confirm_cash_payment(order, Decimal("60000"), change_amount=Decimal("10000"))
    assert order.change_amount == Decimal("10000.00")


def test_cash_payment_on_paid_order_is_invalid():
    order = make_order(OrderStatus.PAID)
    with pytest.raises(InvalidTransitionError):
        confirm_cash_payment(order, Decimal("50000"))


def test_staff_cannot_cancel():
    order = make_order()
    with pytest.raises(PermissionDeniedError):
        cancel(order, "mistake", actor=Actor(user_id=1, role=Role.STAFF))
    assert order.status == OrderStatus.AWAITING_CONFIRMATION


def test_cashier_cannot_refund():
    order = make_order(OrderStatus.COMPLETED)
    with pytest.raises(PermissionDeniedError):
        transition(order, OrderStatus.REFUNDED, actor=Actor(user_id=1, role=Role.CASHIER))

    transition(order, OrderStatus.REFUNDED, actor=Actor(user_id=2, role=Role.ADMIN))
    assert order.status == OrderStatus.REFUNDED


def test_staff_cannot_confirm_payment():
    order = make_order()
    with pytest.raises(PermissionDeniedError):
        confirm_cash_payment(order, Decimal("50000"), actor=Actor(user_id=1, role=Role.STAFF))
