# backend/routes/orders.py
import logging
from datetime import date, datetime, time
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from core.cart import OrderType
from core.errors import PosError
from core.lifecycle import (
    OrderStatus, PaymentMethod, available_transitions, cancel, confirm_cash_payment, transition,
)
from core.rbac import Permission, has_permission
from database import get_db
from models.order import Order
from models.users import User
from schemas.order import (
    OrderResponse, OrdersPage, OrderStatusPatch, OrderCancel, ConfirmPaymentPayload, TransitionsOut,
)
from utils.audit import write_log, client_ip
from utils.inventory import deduct_order_stock, restore_order_stock
from utils.tokenJWT import permission_required, actor_of

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger(__name__)


def _can_see_all(user: User) -> bool:
    return has_permission(user.role, Permission.ORDER_VIEW_ALL)

# Load an order the user is allowed to see, optionally locking the row
def _get_order(db: Session, order_id: int, user: User, lock: bool = False, any_owner: bool = False) -> Order:
    q = db.query(Order).filter(Order.id == order_id)
    if lock:
        q = q.with_for_update()
    order = q.first()
    if not order or not (any_owner or _can_see_all(user) or order.cashier_id == user.id):
        raise HTTPException(status_code=404, detail="Order not found")
    return order

def _log_status(db: Session, request: Request, user: User, order: Order, old: OrderStatus, action: str):
    logger.info("Order %s: %s -> %s by user %s", order.order_number, old.value, order.status.value, user.id)
    write_log(
        db, user_id=user.id, action=action, resource="orders", resource_id=order.order_number, status="SUCCESS",
        ip=client_ip(request),
        meta={"order_id": order.id, "order_number": order.order_number,
              "old": old.value, "new": order.status.value},
    )

def _cancel_and_restore(db: Session, order: Order, reason: Optional[str], user: User, notes: Optional[str] = None):
    cancel(order, reason, notes=notes, actor=actor_of(user))
    restore_order_stock(db, order, user.id)


# List orders with filters; cashiers only see the orders they rang up
@router.get("", response_model=OrdersPage)
def list_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[OrderStatus] = Query(None),
    order_type: Optional[OrderType] = Query(None),
    payment_method: Optional[PaymentMethod] = Query(None),
    date_from: Optional[date] = Query(None, description="YYYY-MM-DD"),
    date_to: Optional[date] = Query(None, description="YYYY-MM-DD"),
    search: Optional[str] = Query(None, description="Order number, customer name or phone"),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.ORDER_VIEW)),
):
    q = db.query(Order).options(joinedload(Order.items))

    if not _can_see_all(current_user):
        q = q.filter(Order.cashier_id == current_user.id)
    if status:
        q = q.filter(Order.status == status)
    if order_type:
        q = q.filter(Order.order_type == order_type)
    if payment_method:
        q = q.filter(Order.payment_method == payment_method)
    if date_from:
        q = q.filter(Order.created_at >= datetime.combine(date_from, time.min))
    if date_to:
        q = q.filter(Order.created_at <= datetime.combine(date_to, time.max))
    if search:
        like = f"%{search}%"
        q = q.filter(or_(
            Order.order_number.ilike(like),
            Order.customer_name.ilike(like),
            Order.customer_phone.ilike(like),
        ))

    total = q.order_by(None).count()
    rows = q.order_by(Order.created_at.desc(), Order.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return {"items": rows, "total": total, "page": page, "page_size": page_size}


# Cash orders waiting for the cashier to take the money
@router.get("/pending-cash", response_model=OrdersPage)
def list_pending_cash(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.PAYMENT_VERIFY)),
):
    q = db.query(Order).options(joinedload(Order.items)).filter(
        Order.status == OrderStatus.AWAITING_CONFIRMATION,
        Order.payment_method == PaymentMethod.CASH,
    )
    total = q.order_by(None).count()
    rows = q.order_by(Order.created_at.asc(), Order.id.asc()).offset((page - 1) * page_size).limit(page_size).all()
    return {"items": rows, "total": total, "page": page, "page_size": page_size}


@router.get("/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.ORDER_VIEW)),
):
    return _get_order(db, order_id, current_user)


@router.get("/{order_id}/transitions", response_model=TransitionsOut)
def get_order_transitions(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.ORDER_VIEW)),
):
    order = _get_order(db, order_id, current_user)
    allowed = available_transitions(order.status)
    return TransitionsOut(status=order.status, available=[s for s in OrderStatus if s in allowed])


# Move an order through its lifecycle
@router.patch("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.ORDER_VIEW)),
):
    order = _get_order(db, order_id, current_user, lock=True)
    old_status = order.status

    try:
        if payload.status == OrderStatus.CANCELLED:
            _cancel_and_restore(db, order, payload.cancellation_reason, current_user, notes=payload.notes)
        else:
            transition(order, payload.status, notes=payload.notes, actor=actor_of(current_user))
            if payload.status == OrderStatus.PAID:
                deduct_order_stock(db, order, current_user.id)
        db.commit()
    except PosError:
        db.rollback()
        raise

    _log_status(db, request, current_user, order, old_status, "ORDER_STATUS_CHANGE")
    db.refresh(order)
    return order


@router.post("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: int,
    payload: OrderCancel,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.ORDER_CANCEL)),
):
    order = _get_order(db, order_id, current_user, lock=True)
    old_status = order.status

    try:
        _cancel_and_restore(db, order, payload.reason, current_user, notes=payload.notes)
        db.commit()
    except PosError:
        db.rollback()
        raise

    _log_status(db, request, current_user, order, old_status, "ORDER_CANCEL")
    db.refresh(order)
    return order


# Record cash received at the counter and mark the order paid
@router.post("/{order_id}/confirm-payment", response_model=OrderResponse)
def confirm_payment(
    order_id: int,
    payload: ConfirmPaymentPayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.PAYMENT_VERIFY)),
):
    order = _get_order(db, order_id, current_user, lock=True, any_owner=True)
    old_status = order.status

    try:
        confirm_cash_payment(
            order,
            payload.paid_amount,
            payload.change_amount,
            payload.payment_method,
            payload.notes,
            actor=actor_of(current_user),
        )
        deduct_order_stock(db, order, current_user.id)
        db.commit()
    except PosError:
        db.rollback()
        raise

    _log_status(db, request, current_user, order, old_status, "ORDER_PAYMENT_CONFIRM")
    db.refresh(order)
    return order
