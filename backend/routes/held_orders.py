# backend/routes/held_orders.py
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from core.cart import Cart
from core.checkout import HeldOrder, recall_held_order
from core.rbac import Permission
from database import get_db
from models.cart import HeldOrderRecord
from models.users import User
from routes.cart import load_cart, save_cart, cart_to_out
from schemas.cart import CartOut, HeldOrderOut
from utils.audit import write_log, client_ip
from utils.tokenJWT import permission_required

router = APIRouter(prefix="/held-orders", tags=["Held orders"])

cashier = permission_required(Permission.ORDER_CREATE)


def _to_held(record: HeldOrderRecord) -> HeldOrder:
    return HeldOrder(
        id=record.id,
        cart=Cart.from_dict(record.cart),
        held_at=record.held_at,
        order_number=record.order_number,
    )

def _held_out(held: HeldOrder) -> HeldOrderOut:
    return HeldOrderOut(
        id=held.id,
        order_number=held.order_number,
        held_at=held.held_at,
        item_count=held.cart.item_count,
        total=held.cart.total,
    )

def _get_record(db: Session, held_id: str, user: User) -> HeldOrderRecord:
    record = db.query(HeldOrderRecord).filter(
        HeldOrderRecord.id == held_id, HeldOrderRecord.user_id == user.id
    ).first()
    if not record:
        raise HTTPException(status_code=404, detail="Held order not found")
    return record


@router.get("", response_model=List[HeldOrderOut])
def list_held_orders(db: Session = Depends(get_db), current_user: User = Depends(cashier)):
    rows = (
        db.query(HeldOrderRecord)
        .filter(HeldOrderRecord.user_id == current_user.id)
        .order_by(HeldOrderRecord.held_at.desc())
        .all()
    )
    return [_held_out(_to_held(r)) for r in rows]


# Restore a parked cart as the live cart; the held entry is consumed
@router.post("/{held_id}/recall", response_model=CartOut)
def recall(
    held_id: str,
    request: Request,
    replace: bool = Query(False, description="Discard a non-empty live cart"),
    db: Session = Depends(get_db),
    current_user: User = Depends(cashier),
):
    record = _get_record(db, held_id, current_user)
    cart_record, live_cart = load_cart(db, current_user)

    if not live_cart.is_empty and not replace:
        raise HTTPException(
            status_code=409,
            detail="Current cart is not empty. Hold or clear it first, or pass replace=true",
        )

    held = _to_held(record)
    cart = recall_held_order(held)
    db.delete(record)
    save_cart(db, cart_record, cart)

    write_log(db, user_id=current_user.id, action="CART_RECALL", resource="cart", status="SUCCESS",
              ip=client_ip(request), meta={"held_id": held_id, "order_number": held.order_number})
    return cart_to_out(cart)


@router.delete("/{held_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_held_order(
    held_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(cashier),
):
    record = _get_record(db, held_id, current_user)
    order_number = record.order_number
    db.delete(record)
    db.commit()

    write_log(db, user_id=current_user.id, action="HELD_ORDER_DELETE", resource="cart", status="SUCCESS",
              ip=client_ip(request), meta={"held_id": held_id, "order_number": order_number})
