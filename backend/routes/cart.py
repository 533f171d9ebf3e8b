# backend/routes/cart.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session

from config import settings
from core.cart import Cart, CustomerInfo, OrderType
from core.checkout import PaymentInfo, checkout, hold_cart
from core.errors import StockExceededError
from core.order_number import generate_order_number
from core.rbac import Permission
from database import get_db
from models.cart import PosCart, HeldOrderRecord
from models.order import Order
from models.product import Product
from models.users import User
from schemas.cart import (
    CartAddItem, CartUpdateItem, CartItemNote, CartDiscount, CartTax, CartOrderType,
    CustomerInfoIn, CartCharges, CartOut, CartItemOut, HeldOrderOut, CheckoutPayload,
)
from schemas.order import CheckoutResponse, OrderResponse
from utils.audit import write_log, client_ip
from utils.inventory import product_info
from utils.tokenJWT import permission_required, actor_of

router = APIRouter(prefix="/cart", tags=["Cart"])

cashier = permission_required(Permission.ORDER_CREATE)


def new_cart() -> Cart:
    return Cart(tax_rate=settings.DEFAULT_TAX_RATE, tax_enabled=settings.TAX_ENABLED)

# Retrieve the live cart of the user or start an empty one
def load_cart(db: Session, user: User):
    record = db.query(PosCart).filter(PosCart.user_id == user.id).first()
    if not record:
        record = PosCart(user_id=user.id, state=new_cart().to_dict())
        db.add(record)
        db.commit()
        db.refresh(record)
    return record, Cart.from_dict(record.state)

def save_cart(db: Session, record: PosCart, cart: Cart):
    record.state = cart.to_dict()
    db.commit()

def cart_to_out(cart: Cart) -> CartOut:
    return CartOut(
        items=[
            CartItemOut(
                product_id=it.product_id,
                name=it.name,
                sku=it.sku,
                quantity=it.quantity,
                unit_price=it.unit_price,
                line_total=it.line_total,
                note=it.note,
                max_quantity=it.max_quantity,
            )
            for it in cart.items
        ],
        item_count=cart.item_count,
        order_type=cart.order_type,
        customer=CustomerInfoIn(**vars(cart.customer)),
        discount_type=cart.discount_type,
        discount_value=cart.discount_value,
        tax_enabled=cart.tax_enabled,
        tax_rate=cart.tax_rate,
        subtotal=cart.subtotal,
        discount_amount=cart.discount_amount,
        tax_amount=cart.tax_amount,
        service_charge=cart.service_charge,
        delivery_fee=cart.applied_delivery_fee,
        total=cart.total,
    )

def _log(db: Session, request: Request, user: User, action: str, cart: Cart, **meta):
    write_log(
        db,
        user_id=user.id,
        action=action,
        resource="cart",
        status="SUCCESS",
        ip=client_ip(request),
        meta={**meta, "items": len(cart.items), "total": str(cart.total)},
    )

def _get_line(cart: Cart, product_id: int):
    item = cart.get_item(product_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Cart item not found")
    return item

def _unique_order_number(db: Session) -> str:
    while True:
        number = generate_order_number()
        taken = (
            db.query(Order.id).filter(Order.order_number == number).first()
            or db.query(HeldOrderRecord.id).filter(HeldOrderRecord.order_number == number).first()
        )
        if not taken:
            return number


@router.get("", response_model=CartOut)
def get_cart(db: Session = Depends(get_db), current_user: User = Depends(cashier)):
    _, cart = load_cart(db, current_user)
    return cart_to_out(cart)


@router.delete("", response_model=CartOut)
def clear_cart(request: Request, db: Session = Depends(get_db), current_user: User = Depends(cashier)):
    record, cart = load_cart(db, current_user)
    cart.clear()
    save_cart(db, record, cart)
    _log(db, request, current_user, "CART_CLEAR", cart)
    return cart_to_out(cart)


@router.post("/add", response_model=CartOut, status_code=status.HTTP_200_OK)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(cashier),
):
    record, cart = load_cart(db, current_user)

    product = db.query(Product).filter(Product.id == payload.product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    if not product.is_available:
        raise HTTPException(status_code=400, detail="Product is not available")

    cart.add_item(product_info(product), payload.quantity)
    save_cart(db, record, cart)
    _log(db, request, current_user, "CART_ADD", cart, product_id=product.id, qty=payload.quantity)
    return cart_to_out(cart)


@router.put("/items/{product_id}", response_model=CartOut)
def update_cart_item(
    product_id: int,
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(cashier),
):
    record, cart = load_cart(db, current_user)
    _get_line(cart, product_id)

    # Cap by the stock on hand now, not when the line was added
    product = db.query(Product).filter(Product.id == product_id).first()
    cart.update_quantity(product_id, payload.quantity, product_info(product) if product else None)
    save_cart(db, record, cart)
    _log(db, request, current_user, "CART_UPDATE", cart, product_id=product_id, qty=payload.quantity)
    return cart_to_out(cart)


@router.delete("/items/{product_id}", response_model=CartOut)
def delete_cart_item(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(cashier),
):
    record, cart = load_cart(db, current_user)
    cart.remove_item(product_id)
    save_cart(db, record, cart)
    _log(db, request, current_user, "CART_DELETE", cart, product_id=product_id)
    return cart_to_out(cart)


@router.put("/items/{product_id}/note", response_model=CartOut)
def set_item_note(
    product_id: int,
    payload: CartItemNote,
    db: Session = Depends(get_db),
    current_user: User = Depends(cashier),
):
    record, cart = load_cart(db, current_user)
    _get_line(cart, product_id)
    cart.set_note(product_id, payload.note)
    save_cart(db, record, cart)
    return cart_to_out(cart)


@router.put("/discount", response_model=CartOut)
def set_discount(
    payload: CartDiscount,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(cashier),
):
    record, cart = load_cart(db, current_user)
    cart.set_discount(payload.value, payload.type)
    save_cart(db, record, cart)
    _log(db, request, current_user, "CART_DISCOUNT", cart, type=payload.type.value, value=str(payload.value))
    return cart_to_out(cart)


@router.put("/tax", response_model=CartOut)
def set_tax(payload: CartTax, db: Session = Depends(get_db), current_user: User = Depends(cashier)):
    record, cart = load_cart(db, current_user)
    if payload.rate is not None:
        cart.set_tax_rate(payload.rate)
    cart.set_tax_enabled(payload.enabled)
    save_cart(db, record, cart)
    return cart_to_out(cart)


@router.put("/order-type", response_model=CartOut)
def set_order_type(payload: CartOrderType, db: Session = Depends(get_db), current_user: User = Depends(cashier)):
    record, cart = load_cart(db, current_user)
    cart.set_order_type(payload.order_type)

    # New delivery orders start with the configured delivery fee
    if payload.order_type == OrderType.DELIVERY and cart.delivery_fee == 0 and settings.DEFAULT_DELIVERY_FEE > 0:
        cart.set_charges(cart.service_charge, settings.DEFAULT_DELIVERY_FEE)

    save_cart(db, record, cart)
    return cart_to_out(cart)


@router.put("/customer", response_model=CartOut)
def set_customer(payload: CustomerInfoIn, db: Session = Depends(get_db), current_user: User = Depends(cashier)):
    record, cart = load_cart(db, current_user)
    cart.set_customer_info(CustomerInfo(**payload.model_dump()))
    save_cart(db, record, cart)
    return cart_to_out(cart)


@router.put("/charges", response_model=CartOut)
def set_charges(payload: CartCharges, db: Session = Depends(get_db), current_user: User = Depends(cashier)):
    record, cart = load_cart(db, current_user)
    cart.set_charges(payload.service_charge, payload.delivery_fee)
    save_cart(db, record, cart)
    return cart_to_out(cart)


# Park the cart under a new order number and start an empty one
@router.post("/hold", response_model=HeldOrderOut, status_code=status.HTTP_201_CREATED)
def hold_current_cart(request: Request, db: Session = Depends(get_db), current_user: User = Depends(cashier)):
    record, cart = load_cart(db, current_user)
    held = hold_cart(cart, order_number_factory=lambda: _unique_order_number(db))

    db.add(HeldOrderRecord(
        id=held.id,
        user_id=current_user.id,
        order_number=held.order_number,
        cart=held.cart.to_dict(),
        held_at=held.held_at,
    ))
    cart.clear()
    save_cart(db, record, cart)

    write_log(db, user_id=current_user.id, action="CART_HOLD", resource="cart",
              resource_id=held.order_number, status="SUCCESS",
              ip=client_ip(request), meta={"held_id": held.id, "order_number": held.order_number})
    return HeldOrderOut(
        id=held.id,
        order_number=held.order_number,
        held_at=held.held_at,
        item_count=held.cart.item_count,
        total=held.cart.total,
    )


@router.post("/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
def checkout_cart(
    payload: CheckoutPayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(cashier),
):
    record, cart = load_cart(db, current_user)

    # Catalog may have changed since the items were added
    for item in cart.items:
        product = db.query(Product).filter(Product.id == item.product_id).first()
        if not product or not product.is_available:
            raise HTTPException(status_code=400, detail=f"Product not available: {item.name}")
        if product.track_inventory and product.quantity < item.quantity:
            raise StockExceededError(product.id, item.quantity, product.quantity)

    result = checkout(
        cart,
        PaymentInfo(method=payload.payment_method, notes=payload.notes),
        order_number_factory=lambda: _unique_order_number(db),
        actor=actor_of(current_user),
    )
    db.add(result.order)
    cart.clear()
    record.state = cart.to_dict()
    db.commit()
    db.refresh(result.order)

    write_log(db, user_id=current_user.id, action="ORDER_CREATE", resource="orders",
              resource_id=result.order.order_number, status="SUCCESS",
              ip=client_ip(request),
              meta={"order_id": result.order.id, "order_number": result.order.order_number,
                    "total": str(result.order.total_amount), "method": payload.payment_method.value})
    return CheckoutResponse(
        order=OrderResponse.model_validate(result.order),
        requires_redirect=result.requires_redirect,
    )
