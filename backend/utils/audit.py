# backend/utils/audit.py
from typing import Optional
from fastapi import Request
from sqlalchemy.orm import Session
from models.log import Log


def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None or request.client is None:
        return None
    return request.client.host


# Persist one audit entry; commits on its own so it survives a later rollback
def write_log(db: Session, *, user_id, action, resource, status="SUCCESS", ip=None, meta=None, resource_id=None):
    entry = Log(
        user_id=user_id,
        action=action,
        resource=resource,
        resource_id=str(resource_id) if resource_id is not None else None,
        status=status,
        ip=ip,
        meta=meta or {},
    )
    db.add(entry)
    db.commit()
