# backend/core/errors.py
from typing import Iterable, Optional


# Base class for all recoverable point-of-sale errors
class PosError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    # Extra fields merged into the JSON error body
    def details(self) -> dict:
        return {}


# Missing or invalid required input
class ValidationError(PosError):
    status_code = 422

    def __init__(self, message: str, fields: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.fields = list(fields or [])

    def details(self) -> dict:
        return {"fields": self.fields} if self.fields else {}


# Requested quantity would exceed the tracked stock of a product
class StockExceededError(PosError):
    status_code = 409

    def __init__(self, product_id, requested: int, available: int):
        super().__init__(f"Only {available} items available in stock")
        self.product_id = product_id
        self.requested = requested
        self.available = available

    def details(self) -> dict:
        return {"product_id": self.product_id, "requested": self.requested, "available": self.available}


# Status change not allowed by the transition table
class InvalidTransitionError(PosError):
    status_code = 409

    def __init__(self, current, target):
        super().__init__(f"Cannot change status from {current.value} to {target.value}")
        self.current = current
        self.target = target

    def details(self) -> dict:
        return {"current": self.current.value, "target": self.target.value}


# Cash tendered is less than the amount due
class InsufficientPaymentError(PosError):
    status_code = 400

    def __init__(self, required, provided):
        super().__init__("Insufficient payment amount")
        self.required = required
        self.provided = provided
        self.shortage = required - provided

    def details(self) -> dict:
        return {
            "required": str(self.required),
            "provided": str(self.provided),
            "shortage": str(self.shortage),
        }


# Actor lacks the permission required by an operation
class PermissionDeniedError(PosError):
    status_code = 403

    def __init__(self, permission):
        super().__init__(f"Missing permission: {permission.value}")
        self.permission = permission


# Monetary breakdown of an order cannot change after checkout
class FrozenAmountError(PosError):
    status_code = 409

    def __init__(self, field: str):
        super().__init__(f"{field} is frozen once the order is created")
        self.field = field

    def details(self) -> dict:
        return {"field": self.field}
