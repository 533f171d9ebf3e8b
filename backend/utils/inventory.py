# backend/utils/inventory.py
import logging
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from core.cart import ProductInfo
from core.errors import StockExceededError
from models.order import Order
from models.product import Product
from models.stock import StockMovement

logger = logging.getLogger(__name__)


# Read-only view of a catalog row for the cart engine
def product_info(product: Product) -> ProductInfo:
    return ProductInfo(
        id=product.id,
        name=product.name,
        price=product.price,
        track_inventory=bool(product.track_inventory),
        quantity=product.quantity or 0,
        sku=product.sku,
    )


def record_movement(
    db: Session, product: Product, delta: int, *, type: str, user_id: Optional[int],
    reason: Optional[str] = None, reference_type: str = "MANUAL", reference_id: Optional[str] = None,
) -> StockMovement:
    previous = product.quantity
    product.quantity = previous + delta
    movement = StockMovement(
        product_id=product.id, user_id=user_id, type=type, qty=delta,
        previous_stock=previous, current_stock=product.quantity, reason=reason,
        reference_type=reference_type, reference_id=reference_id,
    )
    db.add(movement)
    return movement


def _locked_product(db: Session, product_id: int) -> Optional[Product]:
    return db.query(Product).filter(Product.id == product_id).with_for_update().first()


# Net stock change already booked against the order for one product
def _order_movement_total(db: Session, order: Order, product_id: int) -> int:
    total = db.query(func.coalesce(func.sum(StockMovement.qty), 0)).filter(
        StockMovement.product_id == product_id,
        StockMovement.reference_type == "ORDER",
        StockMovement.reference_id == order.order_number,
    ).scalar()
    return int(total or 0)


def deduct_order_stock(
    db: Session, order: Order, user_id: Optional[int], allow_shortfall: bool = False,
) -> List[dict]:
    """Take the sold quantities out of stock. Caller commits.

    A short product raises ``StockExceededError`` unless ``allow_shortfall``
    is set, which is the case for payments already settled elsewhere: the
    product is then emptied and the missing quantity is returned so the
    caller can report it.
    """
    shortfalls: List[dict] = []
    if order.stock_deducted:
        return shortfalls
    for item in order.items:
        product = _locked_product(db, item.product_id) if item.product_id else None
        if product is None or not product.track_inventory:
            continue
        taken = item.quantity
        if product.quantity < item.quantity:
            if not allow_shortfall:
                raise StockExceededError(product.id, item.quantity, product.quantity)
            taken = product.quantity
            shortfalls.append({"product_id": product.id, "requested": item.quantity, "available": taken})
            logger.warning("Order %s oversold product %s: requested %s, in stock %s",
                           order.order_number, product.id, item.quantity, taken)
        if taken:
            record_movement(
                db, product, -taken, type="OUT", user_id=user_id,
                reason=f"Sold in order {order.order_number}",
                reference_type="ORDER", reference_id=order.order_number,
            )
    order.stock_deducted = True
    logger.info("Stock deducted for order %s", order.order_number)
    return shortfalls


def restore_order_stock(db: Session, order: Order, user_id: Optional[int]) -> None:
    """Put back what the sale of a cancelled paid order took. Caller commits."""
    if not order.stock_deducted:
        return
    db.flush()
    for item in order.items:
        product = _locked_product(db, item.product_id) if item.product_id else None
        if product is None or not product.track_inventory:
            continue
        taken = -_order_movement_total(db, order, product.id)
        if taken <= 0:
            continue
        record_movement(
            db, product, taken, type="IN", user_id=user_id,
            reason=f"Order {order.order_number} cancelled",
            reference_type="ORDER", reference_id=order.order_number,
        )
    order.stock_deducted = False
    logger.info("Stock restored for order %s", order.order_number)
