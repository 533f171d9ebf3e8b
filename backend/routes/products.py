# backend/routes/products.py
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from core.rbac import Permission
from database import get_db
from models.category import Category
from models.product import Product
from models.users import User
from utils.audit import write_log, client_ip
from utils.inventory import record_movement
from utils.tokenJWT import permission_required
import schemas.product as product_schemas

router = APIRouter(tags=["Products"])


def _norm_sku(sku: Optional[str]) -> Optional[str]:
    if sku is None:
        return None
    s = sku.strip().upper()
    return s if s else None


def _get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def _ensure_unique_sku(db: Session, sku: str, exclude_id: Optional[int] = None):
    query = db.query(Product).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=409, detail=f"SKU {sku} already exists")


def _ensure_category(db: Session, category_id: Optional[int]):
    if category_id is None:
        return
    exists = db.query(Category.id).filter(Category.id == category_id, Category.deleted_at.is_(None)).first()
    if not exists:
        raise HTTPException(status_code=400, detail="Category not found")


@router.get("/products", response_model=product_schemas.ProductListPage)
def list_products(
    search: Optional[str] = Query(None),
    category_id: Optional[int] = Query(None),
    available: Optional[bool] = Query(None),
    low_stock: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=500),
    sort_by: str = Query("id"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.PRODUCT_VIEW)),
):
    query = db.query(Product)

    if search:
        like = f"%{search}%"
        query = query.filter(Product.name.ilike(like) | Product.sku.ilike(like))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if available is not None:
        query = query.filter(Product.is_available == available)
    if low_stock:
        query = query.filter(
            Product.track_inventory.is_(True),
            Product.low_stock_alert.isnot(None),
            Product.quantity <= Product.low_stock_alert,
        )

    allowed = {
        "id": Product.id, "sku": Product.sku, "name": Product.name,
        "price": Product.price, "quantity": Product.quantity, "created_at": Product.created_at,
    }
    sort_col = allowed.get(sort_by.lower(), Product.id)
    query = query.order_by(sort_col.asc() if order == "asc" else sort_col.desc())

    total = query.count()
    items: List[Product] = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/products/{product_id}", response_model=product_schemas.ProductOut)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.PRODUCT_VIEW)),
):
    return _get_product(db, product_id)


@router.post("/products", response_model=product_schemas.ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.PRODUCT_CREATE)),
):
    sku = _norm_sku(payload.sku)
    if not sku:
        raise HTTPException(status_code=422, detail="SKU is required")
    _ensure_unique_sku(db, sku)
    _ensure_category(db, payload.category_id)

    data = payload.model_dump(exclude={"quantity"})
    data["sku"] = sku
    product = Product(**data, quantity=0)
    db.add(product)
    db.flush()

    # Opening stock is logged like any other movement
    if payload.quantity:
        record_movement(db, product, payload.quantity, type="IN", user_id=current_user.id, reason="Initial stock")

    db.commit()
    db.refresh(product)
    write_log(db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products", resource_id=product.id,
              status="SUCCESS",
              ip=client_ip(request), meta={"product_id": product.id, "sku": product.sku})
    return product


@router.patch("/products/{product_id}", response_model=product_schemas.ProductOut)
def update_product(
    product_id: int,
    payload: product_schemas.ProductEditRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.PRODUCT_UPDATE)),
):
    product = _get_product(db, product_id)
    changes = payload.model_dump(exclude_unset=True)

    if "sku" in changes:
        changes["sku"] = _norm_sku(changes["sku"])
        if not changes["sku"]:
            raise HTTPException(status_code=422, detail="SKU cannot be empty")
        _ensure_unique_sku(db, changes["sku"], exclude_id=product.id)
    if "category_id" in changes:
        _ensure_category(db, changes["category_id"])

    for key, value in changes.items():
        setattr(product, key, value)
    db.commit()
    db.refresh(product)

    write_log(db, user_id=current_user.id, action="PRODUCT_UPDATE", resource="products", resource_id=product.id,
              status="SUCCESS",
              ip=client_ip(request), meta={"product_id": product.id, "fields": sorted(changes)})
    return product


# Products referenced by orders are hidden rather than removed
@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.PRODUCT_DELETE)),
):
    product = _get_product(db, product_id)
    product.is_available = False
    db.commit()
    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products", resource_id=product.id,
              status="SUCCESS",
              ip=client_ip(request), meta={"product_id": product.id})
