# backend/core/cart.py
"""In-progress POS cart: line items, stock caps and derived totals.

Every mutating method validates first, then changes state, then calls
``recompute_totals``. A rejected call leaves the cart exactly as it was.
"""
import copy
import enum
from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from core.errors import StockExceededError, ValidationError

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")
DEFAULT_TAX_RATE = Decimal("0.11")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # floats go through str() so 0.11 stays 0.11
    return Decimal(str(value))


def to_money(value) -> Decimal:
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class DiscountType(str, enum.Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


class OrderType(str, enum.Enum):
    DINE_IN = "DINE_IN"
    TAKEAWAY = "TAKEAWAY"
    DELIVERY = "DELIVERY"


# Read-only product data supplied by the inventory store
@dataclass
class ProductInfo:
    id: Any
    name: str
    price: Decimal
    track_inventory: bool = False
    quantity: int = 0
    sku: Optional[str] = None

    @property
    def max_quantity(self) -> Optional[int]:
        return self.quantity if self.track_inventory else None


@dataclass
class CustomerInfo:
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    table_number: Optional[str] = None

    # Required fields left blank for the given order type
    def missing_fields(self, order_type: OrderType) -> List[str]:
        if order_type != OrderType.DELIVERY:
            return []
        return [f for f in ("name", "phone", "address") if not (getattr(self, f) or "").strip()]


@dataclass
class CartLineItem:
    product_id: Any
    name: str
    unit_price: Decimal
    quantity: int = 1
    sku: Optional[str] = None
    note: Optional[str] = None
    max_quantity: Optional[int] = None

    @property
    def line_total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["unit_price"] = str(self.unit_price)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartLineItem":
        return cls(
            product_id=data["product_id"],
            name=data["name"],
            unit_price=to_money(data["unit_price"]),
            quantity=int(data["quantity"]),
            sku=data.get("sku"),
            note=data.get("note"),
            max_quantity=data.get("max_quantity"),
        )


def _check_stock(product_id, requested: int, max_quantity: Optional[int]) -> None:
    if max_quantity is not None and requested > max_quantity:
        raise StockExceededError(product_id, requested, max_quantity)


class Cart:
    def __init__(
        self,
        tax_rate=DEFAULT_TAX_RATE,
        tax_enabled: bool = True,
        order_type: OrderType = OrderType.DINE_IN,
    ):
        self.items: List[CartLineItem] = []
        self.tax_rate = to_decimal(tax_rate)
        self.tax_enabled = tax_enabled
        self.order_type = OrderType(order_type)
        self.discount_type = DiscountType.PERCENTAGE
        self.discount_value = ZERO
        self.customer = CustomerInfo()
        self.service_charge = ZERO
        self.delivery_fee = ZERO

        self.subtotal = ZERO
        self.discount_amount = ZERO
        self.tax_amount = ZERO
        self.total = ZERO
        self.recompute_totals()

    # ---- queries ----

    def get_item(self, product_id) -> Optional[CartLineItem]:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    # ---- mutations ----

    def add_item(self, product: ProductInfo, quantity: int = 1) -> CartLineItem:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1", ["quantity"])

        cap = product.max_quantity
        item = self.get_item(product.id)
        if item:
            _check_stock(product.id, item.quantity + quantity, cap)
            item.quantity += quantity
            item.max_quantity = cap
        else:
            _check_stock(product.id, quantity, cap)
            item = CartLineItem(
                product_id=product.id,
                name=product.name,
                unit_price=to_money(product.price),
                quantity=quantity,
                sku=product.sku,
                max_quantity=cap,
            )
            self.items.append(item)

        self.recompute_totals()
        return item

    def update_quantity(self, product_id, quantity: int, product: Optional[ProductInfo] = None) -> None:
        """Set the quantity of a line; 0 removes it.

        When ``product`` is given its current stock replaces the cap stored
        on the line, so restocks and sell-outs since the item was added count.
        """
        if quantity < 0:
            raise ValidationError("Quantity cannot be negative", ["quantity"])
        if quantity == 0:
            self.remove_item(product_id)
            return

        item = self.get_item(product_id)
        if item is None:
            return
        cap = product.max_quantity if product is not None else item.max_quantity
        _check_stock(product_id, quantity, cap)
        item.quantity = quantity
        item.max_quantity = cap
        self.recompute_totals()

    def remove_item(self, product_id) -> None:
        self.items = [item for item in self.items if item.product_id != product_id]
        self.recompute_totals()

    def set_note(self, product_id, note: Optional[str]) -> None:
        item = self.get_item(product_id)
        if item is not None:
            item.note = note or None

    def set_discount(self, value, discount_type: DiscountType) -> None:
        value = to_decimal(value)
        if value < 0:
            raise ValidationError("Discount cannot be negative", ["discount"])
        self.discount_type = DiscountType(discount_type)
        self.discount_value = value
        self.recompute_totals()

    def set_tax_enabled(self, enabled: bool) -> None:
        self.tax_enabled = bool(enabled)
        self.recompute_totals()

    def set_tax_rate(self, rate) -> None:
        rate = to_decimal(rate)
        if rate < 0 or rate > 1:
            raise ValidationError("Tax rate must be between 0 and 1", ["tax_rate"])
        self.tax_rate = rate
        self.recompute_totals()

    # Switching order type drops customer details, each type requires different ones
    def set_order_type(self, order_type: OrderType) -> None:
        self.order_type = OrderType(order_type)
        self.customer = CustomerInfo()
        self.recompute_totals()

    def set_customer_info(self, customer: CustomerInfo) -> None:
        self.customer = copy.copy(customer)

    def set_charges(self, service_charge=0, delivery_fee=0) -> None:
        service_charge, delivery_fee = to_money(service_charge), to_money(delivery_fee)
        if service_charge < 0 or delivery_fee < 0:
            raise ValidationError("Charges cannot be negative", ["service_charge", "delivery_fee"])
        self.service_charge = service_charge
        self.delivery_fee = delivery_fee
        self.recompute_totals()

    def clear(self) -> None:
        self.items = []
        self.discount_type = DiscountType.PERCENTAGE
        self.discount_value = ZERO
        self.customer = CustomerInfo()
        self.service_charge = ZERO
        self.delivery_fee = ZERO
        self.recompute_totals()

    # ---- totals ----

    @property
    def applied_delivery_fee(self) -> Decimal:
        return self.delivery_fee if self.order_type == OrderType.DELIVERY else ZERO

    def recompute_totals(self) -> None:
        subtotal = to_money(sum((item.unit_price * item.quantity for item in self.items), ZERO))

        if self.discount_type == DiscountType.PERCENTAGE:
            discount = to_money(subtotal * self.discount_value / 100)
        else:
            discount = to_money(self.discount_value)
        discount = min(discount, subtotal)

        tax = to_money((subtotal - discount) * self.tax_rate) if self.tax_enabled else ZERO

        self.subtotal = subtotal
        self.discount_amount = discount
        self.tax_amount = tax
        self.total = subtotal - discount + tax + self.service_charge + self.applied_delivery_fee

    # ---- snapshots ----

    def snapshot(self) -> "Cart":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "tax_rate": str(self.tax_rate),
            "tax_enabled": self.tax_enabled,
            "order_type": self.order_type.value,
            "discount_type": self.discount_type.value,
            "discount_value": str(self.discount_value),
            "customer": asdict(self.customer),
            "service_charge": str(self.service_charge),
            "delivery_fee": str(self.delivery_fee),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cart":
        cart = cls(
            tax_rate=data.get("tax_rate", DEFAULT_TAX_RATE),
            tax_enabled=data.get("tax_enabled", True),
            order_type=data.get("order_type", OrderType.DINE_IN),
        )
        cart.items = [CartLineItem.from_dict(item) for item in data.get("items", [])]
        cart.discount_type = DiscountType(data.get("discount_type", DiscountType.PERCENTAGE))
        cart.discount_value = to_decimal(data.get("discount_value", ZERO))
        cart.customer = CustomerInfo(**(data.get("customer") or {}))
        cart.service_charge = to_money(data.get("service_charge", ZERO))
        cart.delivery_fee = to_money(data.get("delivery_fee", ZERO))
        cart.recompute_totals()
        return cart
