# backend/models/cart.py
from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, JSON, func
from sqlalchemy.orm import relationship
from database import Base


# Live POS cart of a cashier, stored as the serialized core.cart.Cart
class PosCart(Base):
    __tablename__ = "pos_carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, index=True, nullable=False)
    state = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User")


# Cart snapshot set aside for later recall
class HeldOrderRecord(Base):
    __tablename__ = "held_orders"

    id = Column(String(64), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    order_number = Column(String(40), nullable=False)
    cart = Column(JSON, nullable=False)
    held_at = Column(DateTime(timezone=True), nullable=False)

    user = relationship("User")
