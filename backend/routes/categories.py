# backend/routes/categories.py
import re
from datetime import datetime, timezone
from typing import Dict, Iterable, Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from core.rbac import Permission
from database import get_db
from models.category import Category
from models.product import Product
from models.users import User
from schemas.category import CategoryCreate, CategoryOut, CategoryPage, CategoryUpdate
from utils.audit import write_log, client_ip
from utils.tokenJWT import permission_required

router = APIRouter(prefix="/categories", tags=["Categories"])


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.strip().lower()).strip("-")


def _get_category(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == category_id, Category.deleted_at.is_(None)).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


def _ensure_unique_slug(db: Session, slug: str, exclude_id: Optional[int] = None):
    query = db.query(Category.id).filter(Category.slug == slug)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=409, detail="A category with this slug already exists")


def _product_counts(db: Session, category_ids: Iterable[int]) -> Dict[int, int]:
    ids = list(category_ids)
    if not ids:
        return {}
    rows = (
        db.query(Product.category_id, func.count(Product.id))
        .filter(Product.category_id.in_(ids))
        .group_by(Product.category_id)
        .all()
    )
    return dict(rows)


def _to_out(category: Category, count: int) -> CategoryOut:
    return CategoryOut.model_validate(category).model_copy(update={"product_count": count})


def _log(db: Session, request: Request, user: User, action: str, category: Category, **meta):
    write_log(db, user_id=user.id, action=action, resource="categories", resource_id=category.id,
              status="SUCCESS", ip=client_ip(request),
              meta={"category_id": category.id, "slug": category.slug, **meta})


@router.get("", response_model=CategoryPage)
def list_categories(
    search: Optional[str] = Query(None, description="Name or description"),
    is_active: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    sort_by: Literal["sort_order", "name", "created_at"] = "sort_order",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.CATEGORY_VIEW)),
):
    query = db.query(Category).filter(Category.deleted_at.is_(None))

    if is_active is not None:
        query = query.filter(Category.is_active == is_active)
    if search:
        like = f"%{search}%"
        query = query.filter(Category.name.ilike(like) | Category.description.ilike(like))

    sort_map = {"sort_order": Category.sort_order, "name": Category.name, "created_at": Category.created_at}
    col = sort_map[sort_by]
    query = query.order_by(col.asc() if order == "asc" else col.desc(), Category.id.asc())

    total = query.count()
    rows = query.offset((page - 1) * page_size).limit(page_size).all()
    counts = _product_counts(db, (c.id for c in rows))
    return {
        "items": [_to_out(c, counts.get(c.id, 0)) for c in rows],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.CATEGORY_VIEW)),
):
    category = _get_category(db, category_id)
    return _to_out(category, _product_counts(db, [category.id]).get(category.id, 0))


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.CATEGORY_CREATE)),
):
    slug = payload.slug or slugify(payload.name)
    if not slug:
        raise HTTPException(status_code=422, detail="Slug cannot be derived from the name")
    _ensure_unique_slug(db, slug)

    category = Category(**payload.model_dump(exclude={"slug"}), slug=slug)
    db.add(category)
    db.commit()
    db.refresh(category)

    _log(db, request, current_user, "CATEGORY_CREATE", category)
    return _to_out(category, 0)


@router.patch("/{category_id}", response_model=CategoryOut)
@router.put("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.CATEGORY_UPDATE)),
):
    category = _get_category(db, category_id)
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("slug") and changes["slug"] != category.slug:
        _ensure_unique_slug(db, changes["slug"], exclude_id=category.id)
    if "name" in changes and changes["name"] is None:
        raise HTTPException(status_code=422, detail="Name cannot be empty")

    for key, value in changes.items():
        if key == "slug" and not value:
            continue
        setattr(category, key, value)
    category.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(category)

    _log(db, request, current_user, "CATEGORY_UPDATE", category, fields=sorted(changes))
    return _to_out(category, _product_counts(db, [category.id]).get(category.id, 0))


# Categories still holding products cannot be removed
@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.CATEGORY_DELETE)),
):
    category = _get_category(db, category_id)
    count = _product_counts(db, [category.id]).get(category.id, 0)
    if count:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot delete category with existing products ({count}). Reassign or delete them first.",
        )

    category.deleted_at = datetime.now(timezone.utc)
    category.is_active = False
    db.commit()
    _log(db, request, current_user, "CATEGORY_DELETE", category)
