import pytest

from core.errors import PermissionDeniedError
from core.rbac import (
    ROLE_PERMISSIONS, Actor, Permission, Role, can_manage_role, has_permission, parse_role,
    require_permission,
)


def test_super_admin_has_every_permission():
    assert ROLE_PERMISSIONS[Role.SUPER_ADMIN] == frozenset(Permission)


def test_admin_cannot_create_users():
    assert not has_permission(Role.ADMIN, Permission.USER_CREATE)
    assert has_permission(Role.ADMIN, Permission.AUDIT_VIEW)


@pytest.mark.parametrize("permission, allowed", [
    (Permission.ORDER_CREATE, True),
    (Permission.PAYMENT_VERIFY, True),
    (Permission.ORDER_VIEW_ALL, False),
    (Permission.ORDER_REFUND, False),
    (Permission.PRODUCT_CREATE, False),
    (Permission.CATEGORY_VIEW, True),
    (Permission.CATEGORY_CREATE, False),
])
def test_cashier_permissions(permission, allowed):
    assert has_permission(Role.CASHIER, permission) is allowed


def test_staff_is_read_mostly():
    assert has_permission("staff", Permission.ORDER_CREATE)
    assert not has_permission("STAFF", Permission.ORDER_CANCEL)


def test_unknown_role_has_nothing():
    assert parse_role("OWNER") is None
    assert parse_role(None) is None
    assert not has_permission("OWNER", Permission.PRODUCT_VIEW)


def test_require_permission():
    require_permission(None, Permission.ORDER_REFUND)
    require_permission(Actor(1, Role.ADMIN), Permission.ORDER_REFUND)

    with pytest.raises(PermissionDeniedError) as exc:
        require_permission(Actor(2, Role.CASHIER), Permission.ORDER_REFUND)
    assert exc.value.status_code == 403


def test_role_management():
    assert can_manage_role(Role.SUPER_ADMIN, Role.SUPER_ADMIN)
    assert can_manage_role(Role.ADMIN, Role.CASHIER)
    assert not can_manage_role(Role.ADMIN, Role.SUPER_ADMIN)
    assert not can_manage_role(Role.CASHIER, Role.STAFF)
