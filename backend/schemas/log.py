from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict


# Output schema for one audit entry
class LogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ts: datetime
    user_id: Optional[int] = None
    user_email: Optional[str] = None
    action: str
    resource: str
    resource_id: Optional[str] = None
    status: str
    ip: Optional[str] = None
    meta: Optional[Any] = None


class LogPage(BaseModel):
    items: List[LogOut]
    total: int
    page: int
    page_size: int
