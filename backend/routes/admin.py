# backend/routes/admin.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from typing import List, Optional, Literal
from pydantic import BaseModel
from sqlalchemy.orm import Session

from core.rbac import Permission, Role, can_manage_role
from database import get_db
from models.users import User
from schemas.user import RoleUpdate, UserResponse
from utils.audit import write_log, client_ip
from utils.tokenJWT import permission_required

router = APIRouter(tags=["Admin"])

# Schema for paginated user list response
class PaginatedUsersResponse(BaseModel):
    items: List[UserResponse]
    total: int
    page: int
    page_size: int


# List staff accounts with filtering, sorting and pagination
@router.get("/users", response_model=PaginatedUsersResponse)
def get_all_users(
    q: Optional[str] = Query(None, description="Search by e-mail or name"),
    role: Optional[Role] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    sort_by: Literal["id", "email", "role", "name"] = "id",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.USER_VIEW)),
):
    query = db.query(User)

    if q:
        like = f"%{q.lower()}%"
        query = query.filter(User.email.ilike(like) | User.name.ilike(like))
    if role:
        query = query.filter(User.role == role)

    sort_map = {"id": User.id, "email": User.email, "role": User.role, "name": User.name}
    col = sort_map[sort_by]
    query = query.order_by(col.asc() if order == "asc" else col.desc())

    total = query.count()
    users = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": users, "total": total, "page": page, "page_size": page_size}


# Change the role of another account
@router.put("/users/{user_id}/role", response_model=UserResponse)
def update_user_role(
    user_id: int,
    payload: RoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.USER_MANAGE_ROLES)),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot change your own role")

    # Both the current and the new role must be below the manager
    if not (can_manage_role(current_user.role, user.role) and can_manage_role(current_user.role, payload.role)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot assign this role")

    old_role = user.role
    user.role = payload.role
    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="USER_ROLE_CHANGE", resource="users", status="SUCCESS",
              ip=client_ip(request), meta={"target_id": user.id, "old": old_role.value, "new": user.role.value})
    return user


# Deactivate a staff account
@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.USER_DELETE)),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    # Prevent self-deletion
    if user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")
    if not can_manage_role(current_user.role, user.role):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot delete this account")

    # Orders keep referencing their cashier, so the account is only disabled
    user.is_active = False
    db.commit()
    write_log(db, user_id=current_user.id, action="USER_DEACTIVATE", resource="users", status="SUCCESS",
              ip=client_ip(request), meta={"target_id": user.id})
