# backend/models/log.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base


# Audit trail of business events (cart, checkout, payments, stock, auth)
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    action = Column(String(50), index=True)
    resource = Column(String(50), index=True)
    # Order number, product id, ... of the affected record
    resource_id = Column(String(64), nullable=True, index=True)
    status = Column(String(20), index=True)
    ip = Column(String(64), nullable=True)

    meta = Column(JSON, nullable=True)

    user = relationship("User", lazy="selectin")
