import os

# Must be set before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PAYMENT_GATEWAY_SECRET"] = "test-gateway-secret"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["LOGIN_RATE_LIMIT"] = "3"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from core.rbac import Role
from database import Base, SessionLocal, engine, init_db
from main import app
from models.product import Product
from models.users import User
from utils.tokenJWT import create_access_token


@pytest.fixture
def db():
    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    def _make(role=Role.CASHIER, email=None, is_active=True):
        user = User(
            email=email or f"{role.value.lower()}@example.com",
            password_hash="not-a-real-hash",
            role=role,
            name=role.value.title(),
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = create_access_token({"sub": user.email, "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def cashier(make_user):
    return make_user(Role.CASHIER)


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN)


@pytest.fixture
def cashier_headers(cashier, auth_headers):
    return auth_headers(cashier)


@pytest.fixture
def admin_headers(admin, auth_headers):
    return auth_headers(admin)


@pytest.fixture
def make_product(db):
    def _make(name="Nasi Goreng", sku=None, price="50000", quantity=10, track_inventory=True, is_available=True):
        product = Product(
            name=name,
            sku=sku or name.upper().replace(" ", "-"),
            price=Decimal(price),
            quantity=quantity,
            track_inventory=track_inventory,
            is_available=is_available,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make
