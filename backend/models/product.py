# backend/models/product.py
from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, CheckConstraint, ForeignKey, func
from sqlalchemy.orm import relationship
from database import Base


# Catalog entry with its tracked stock level.
# Only products with track_inventory=True cap cart quantities.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    sku = Column(String, unique=True, nullable=False, index=True)

    description = Column(String)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)

    price = Column(Numeric(12, 2), CheckConstraint("price >= 0"), nullable=False)
    cost_price = Column(Numeric(12, 2), CheckConstraint("cost_price >= 0"), nullable=True)

    # Stock
    track_inventory = Column(Boolean, nullable=False, default=True)
    quantity = Column(Integer, CheckConstraint("quantity >= 0"), nullable=False, default=0)
    low_stock_alert = Column(Integer, nullable=True)

    is_available = Column(Boolean, nullable=False, default=True)
    image_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    category = relationship("Category", back_populates="products", lazy="selectin")
