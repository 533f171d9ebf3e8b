# backend/routes/stock.py
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session
from typing import Optional

from core.rbac import Permission
from database import get_db
from models.stock import StockMovement
from models.product import Product
from models.users import User
from utils.audit import write_log, client_ip
from utils.inventory import record_movement
from utils.tokenJWT import permission_required
import schemas.stock as stock_schemas

router = APIRouter(prefix="/stock", tags=["Stock"])


def _movement_out(m: StockMovement) -> dict:
    return {
        "id": m.id,
        "created_at": m.created_at,
        "product_id": m.product_id,
        "product_name": m.product.name if m.product else "Unknown",
        "product_sku": m.product.sku if m.product else "-",
        "type": m.type,
        "qty": m.qty,
        "previous_stock": m.previous_stock,
        "current_stock": m.current_stock,
        "reason": m.reason,
        "reference_type": m.reference_type,
        "reference_id": m.reference_id,
        "user_id": m.user_id,
        "user_email": m.user.email if m.user else None,
    }


@router.get("", response_model=stock_schemas.StockMovementPage)
def list_movements(
    q: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    product_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.INVENTORY_READ)),
):
    query = db.query(StockMovement).join(Product)

    # Filter by product name or SKU
    if q:
        like = f"%{q}%"
        query = query.filter(Product.name.ilike(like) | Product.sku.ilike(like))
    if type:
        query = query.filter(StockMovement.type == type.upper())
    if product_id:
        query = query.filter(StockMovement.product_id == product_id)

    col = StockMovement.id
    query = query.order_by(col.desc() if order == "desc" else col.asc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": [_movement_out(m) for m in items], "total": total, "page": page, "page_size": page_size}


@router.post("/adjust", response_model=stock_schemas.StockMovementResponse)
def adjust_stock(
    payload: stock_schemas.StockMovementCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.INVENTORY_UPDATE)),
):
    product = db.query(Product).filter(Product.id == payload.product_id).with_for_update().first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    if payload.qty == 0:
        raise HTTPException(status_code=400, detail="Quantity change cannot be zero")
    if product.quantity + payload.qty < 0:
        raise HTTPException(status_code=400, detail="Stock cannot go below zero")

    movement = record_movement(
        db, product, payload.qty, type=payload.type, user_id=current_user.id, reason=payload.reason,
    )
    db.commit()
    db.refresh(movement)

    write_log(db, user_id=current_user.id, action="STOCK_ADJUSTMENT", resource="stock", resource_id=product.id,
              status="SUCCESS",
              ip=client_ip(request), meta={"movement_id": movement.id, "product_id": product.id, "qty": payload.qty})
    return _movement_out(movement)
