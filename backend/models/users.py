# backend/models/users.py
from sqlalchemy import Column, Integer, String, Boolean, Enum
from database import Base
from core.rbac import Role


# Staff account; permissions derive from the role via core.rbac
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(Role), nullable=False, default=Role.STAFF)
    name = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
