# backend/routes/logs.py
from datetime import date, datetime, time
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.rbac import Permission
from database import get_db
from models.log import Log
from models.users import User
from schemas.log import LogOut, LogPage
from utils.tokenJWT import permission_required

router = APIRouter(prefix="/logs", tags=["Logs"])


def _log_out(entry: Log) -> LogOut:
    out = LogOut.model_validate(entry)
    out.user_email = entry.user.email if entry.user else None
    return out


# Browse the audit trail, newest first
@router.get("", response_model=LogPage)
def get_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None, description="Substring of the action, e.g. ORDER_"),
    user_id: Optional[int] = Query(None),
    resource: Optional[str] = Query(None),
    resource_id: Optional[str] = Query(None, description="Exact order number, product id, ..."),
    status: Optional[str] = Query(None, description="SUCCESS or FAIL"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(permission_required(Permission.AUDIT_VIEW)),
):
    query = db.query(Log)

    if action:
        query = query.filter(Log.action.ilike(f"%{action}%"))
    if user_id is not None:
        query = query.filter(Log.user_id == user_id)
    if resource:
        query = query.filter(Log.resource == resource)
    if resource_id:
        query = query.filter(Log.resource_id == resource_id)
    if status:
        query = query.filter(Log.status == status.upper())
    if date_from:
        query = query.filter(Log.ts >= datetime.combine(date_from, time.min))
    if date_to:
        query = query.filter(Log.ts <= datetime.combine(date_to, time.max))

    total = query.count()
    rows = query.order_by(Log.ts.desc(), Log.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return {"items": [_log_out(r) for r in rows], "total": total, "page": page, "page_size": page_size}
