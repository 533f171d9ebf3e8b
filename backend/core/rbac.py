# backend/core/rbac.py
"""Roles, permissions and the single lookup that maps one onto the other.

Every check in the service goes through ``has_permission``; callers pass the
acting user explicitly as an ``Actor`` instead of reading it from request state.
"""
import enum
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from core.errors import PermissionDeniedError


class Role(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    CASHIER = "CASHIER"
    STAFF = "STAFF"


class Permission(str, enum.Enum):
    # Users
    USER_VIEW = "user:view"
    USER_CREATE = "user:create"
    USER_UPDATE = "user:update"
    USER_DELETE = "user:delete"
    USER_MANAGE_ROLES = "user:manage_roles"

    # Catalog and inventory
    PRODUCT_VIEW = "product:view"
    PRODUCT_CREATE = "product:create"
    PRODUCT_UPDATE = "product:update"
    PRODUCT_DELETE = "product:delete"
    CATEGORY_VIEW = "category:view"
    CATEGORY_CREATE = "category:create"
    CATEGORY_UPDATE = "category:update"
    CATEGORY_DELETE = "category:delete"
    INVENTORY_READ = "inventory:read"
    INVENTORY_UPDATE = "inventory:update"

    # Orders
    ORDER_VIEW = "order:view"
    ORDER_VIEW_ALL = "order:view_all"
    ORDER_CREATE = "order:create"
    ORDER_UPDATE = "order:update"
    ORDER_CANCEL = "order:cancel"
    ORDER_REFUND = "order:refund"

    # Payments
    PAYMENT_VIEW = "payment:view"
    PAYMENT_VERIFY = "payment:verify"

    # Audit
    AUDIT_VIEW = "audit:view"


ROLE_PERMISSIONS: Dict[Role, FrozenSet[Permission]] = {
    Role.SUPER_ADMIN: frozenset(Permission),
    Role.ADMIN: frozenset({
        Permission.USER_VIEW,
        Permission.USER_UPDATE,
        Permission.USER_DELETE,
        Permission.USER_MANAGE_ROLES,
        Permission.PRODUCT_VIEW,
        Permission.PRODUCT_CREATE,
        Permission.PRODUCT_UPDATE,
        Permission.PRODUCT_DELETE,
        Permission.CATEGORY_VIEW,
        Permission.CATEGORY_CREATE,
        Permission.CATEGORY_UPDATE,
        Permission.CATEGORY_DELETE,
        Permission.INVENTORY_READ,
        Permission.INVENTORY_UPDATE,
        Permission.ORDER_VIEW,
        Permission.ORDER_VIEW_ALL,
        Permission.ORDER_CREATE,
        Permission.ORDER_UPDATE,
        Permission.ORDER_CANCEL,
        Permission.ORDER_REFUND,
        Permission.PAYMENT_VIEW,
        Permission.PAYMENT_VERIFY,
        Permission.AUDIT_VIEW,
    }),
    Role.CASHIER: frozenset({
        Permission.PRODUCT_VIEW,
        Permission.CATEGORY_VIEW,
        Permission.INVENTORY_READ,
        Permission.ORDER_VIEW,
        Permission.ORDER_CREATE,
        Permission.ORDER_UPDATE,
        Permission.ORDER_CANCEL,
        Permission.PAYMENT_VIEW,
        Permission.PAYMENT_VERIFY,
    }),
    Role.STAFF: frozenset({
        Permission.PRODUCT_VIEW,
        Permission.CATEGORY_VIEW,
        Permission.INVENTORY_READ,
        Permission.ORDER_VIEW,
        Permission.ORDER_CREATE,
    }),
}


# The user performing an operation
@dataclass(frozen=True)
class Actor:
    user_id: Optional[int]
    role: Role


def parse_role(value) -> Optional[Role]:
    if isinstance(value, Role):
        return value
    try:
        return Role((value or "").upper())
    except ValueError:
        return None


def has_permission(role, permission: Permission) -> bool:
    parsed = parse_role(role)
    if parsed is None:
        return False
    return permission in ROLE_PERMISSIONS[parsed]


def require_permission(actor: Optional[Actor], permission: Permission) -> None:
    # No actor means a trusted internal caller (e.g. the payment gateway callback)
    if actor is None:
        return
    if not has_permission(actor.role, permission):
        raise PermissionDeniedError(permission)


def can_manage_role(manager_role, target_role) -> bool:
    manager, target = parse_role(manager_role), parse_role(target_role)
    if manager is None or target is None:
        return False
    if manager == Role.SUPER_ADMIN:
        return True
    if manager == Role.ADMIN:
        return target != Role.SUPER_ADMIN
    return False
