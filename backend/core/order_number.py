# backend/core/order_number.py
import random
import re
import string
import time

_CHARS = string.ascii_uppercase + string.digits
_PATTERN = re.compile(r"^ORD-\d+-[A-Z0-9]+$")


def _random_suffix(length: int) -> str:
    return "".join(random.choice(_CHARS) for _ in range(length))


# Full order number, e.g. ORD-1704567890123-A4B9X
def generate_order_number() -> str:
    return f"ORD-{int(time.time() * 1000)}-{_random_suffix(5)}"


# Short display number, e.g. ORD-890123-A4
def generate_short_order_number() -> str:
    return f"ORD-{str(int(time.time() * 1000))[-6:]}-{_random_suffix(2)}"


def is_valid_order_number(order_number: str) -> bool:
    return bool(_PATTERN.match(order_number or ""))
