# backend/models/stock.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from database import Base


# Inventory log entry: every change of Product.quantity gets one
class StockMovement(Base):
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    # IN, OUT, ADJUSTMENT or LOSS
    type = Column(String(20), nullable=False)
    qty = Column(Integer, nullable=False)
    previous_stock = Column(Integer, nullable=False)
    current_stock = Column(Integer, nullable=False)
    reason = Column(String, nullable=True)

    # ORDER for sales/cancellations, MANUAL for adjustments
    reference_type = Column(String(20), nullable=True)
    reference_id = Column(String(40), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    product = relationship("Product")
    user = relationship("User")
