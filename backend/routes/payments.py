# backend/routes/payments.py
import hashlib
import hmac
import json
import logging
from datetime import datetime, timedelta, timezone
from fastapi import APIRouter, Request, Depends, HTTPException, Header
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from config import settings
from core.errors import PosError
from core.lifecycle import AWAITING_PAYMENT, OrderStatus, PaymentStatus, expire_payment, transition
from core.rbac import Permission
from models.order import Order
from models.users import User
from utils.audit import write_log, client_ip
from utils.inventory import deduct_order_stock
from utils.tokenJWT import permission_required

router = APIRouter(prefix="/payments", tags=["Payments"])
logger = logging.getLogger(__name__)

# Gateway statuses that end an unpaid order
FAILED_STATUSES = {
    "EXPIRED": PaymentStatus.EXPIRED,
    "CANCELED": PaymentStatus.FAILED,
    "CANCELLED": PaymentStatus.FAILED,
    "FAILED": PaymentStatus.FAILED,
}


def sign_notification(request_body: bytes) -> str:
    return hashlib.sha256(request_body + settings.PAYMENT_GATEWAY_SECRET.encode("utf-8")).hexdigest()

def verify_signature(header_signature: str, request_body: bytes) -> bool:
    """Checks the gateway signature: sha256 of the raw body followed by the shared secret."""
    return hmac.compare_digest(sign_notification(request_body), header_signature.strip().lower())


@router.post("/notify")
async def payment_notify(
    request: Request,
    db: Session = Depends(get_db),
    signature: str = Header(None, alias="X-Signature"),
):
    if signature is None:
        raise HTTPException(status_code=400, detail="Missing X-Signature header")

    body = await request.body()
    logger.info("Payment notify received. body_preview=%s", body[:1000].decode("utf-8", errors="replace"))

    if not verify_signature(signature, body):
        logger.warning("Payment notify signature verification failed")
        raise HTTPException(status_code=403, detail="Signature verification failed")

    try:
        notification = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    order_number = notification.get("order_number")
    gateway_status = (notification.get("status") or "").upper()
    if not order_number:
        return {"status": "error", "message": "Missing order_number"}

    order = db.query(Order).filter(Order.order_number == order_number).with_for_update().first()
    if not order:
        return {"status": "error", "message": "Order not found"}

    old_status = order.status
    # Repeated notifications for an order that already left the payment stage are ignored
    if old_status not in AWAITING_PAYMENT:
        return {"status": "ok"}

    shortfalls = []
    try:
        if gateway_status == "COMPLETED":
            transition(order, OrderStatus.PAID, notes="Payment confirmed by gateway")
            order.gateway_reference = notification.get("reference")
            # The money is taken already, so a stock shortfall is reported instead of refused
            shortfalls = deduct_order_stock(db, order, order.cashier_id, allow_shortfall=True)
        elif gateway_status in FAILED_STATUSES:
            transition(order, OrderStatus.CANCELLED, cancellation_reason=f"Payment {gateway_status.lower()}")
            order.payment_status = FAILED_STATUSES[gateway_status]
        else:
            return {"status": "ok"}
        db.commit()
    except PosError:
        db.rollback()
        logger.exception("Failed to apply payment notification for order %s", order_number)
        raise

    meta = {"order_id": order.id, "order_number": order_number,
            "gateway_status": gateway_status, "old": old_status.value, "new": order.status.value}
    if shortfalls:
        meta["stock_shortfall"] = shortfalls
    write_log(
        db, user_id=order.cashier_id, action="PAYMENT_NOTIFY", resource="orders", resource_id=order_number,
        status="SUCCESS",
        ip=client_ip(request),
        meta=meta,
    )
    return {"status": "ok"}


# Gateway orders whose payment window has passed
def _stale_pending_query(db: Session, now: datetime):
    cutoff = now - timedelta(minutes=settings.PAYMENT_EXPIRY_MINUTES)
    return db.query(Order).filter(
        Order.status == OrderStatus.PENDING_PAYMENT,
        Order.payment_status == PaymentStatus.PENDING,
        func.coalesce(Order.updated_at, Order.created_at) < cutoff,
    )


@router.get("/expire-pending")
def count_expired_pending(
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.PAYMENT_VERIFY)),
):
    now = datetime.now(timezone.utc)
    return {
        "pending_to_expire": _stale_pending_query(db, now).count(),
        "cutoff_time": (now - timedelta(minutes=settings.PAYMENT_EXPIRY_MINUTES)).isoformat(),
    }


# Meant to be called periodically by a scheduler or from the admin panel
@router.post("/expire-pending")
def expire_pending_payments(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.PAYMENT_VERIFY)),
):
    now = datetime.now(timezone.utc)
    orders = _stale_pending_query(db, now).with_for_update().all()
    expired = [order.order_number for order in orders]

    try:
        for order in orders:
            expire_payment(order, settings.PAYMENT_EXPIRY_MINUTES, now=now)
        db.commit()
    except PosError:
        db.rollback()
        logger.exception("Failed to expire pending payments")
        raise

    logger.info("Expired %s pending payments", len(expired))
    for number in expired:
        write_log(
            db, user_id=current_user.id, action="PAYMENT_EXPIRE", resource="orders", resource_id=number,
            status="SUCCESS", ip=client_ip(request), meta={"order_number": number},
        )
    return {"expired_count": len(expired), "expired_orders": expired}
