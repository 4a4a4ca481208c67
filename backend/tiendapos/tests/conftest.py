"""
Pytest fixtures for the TiendaPOS backend.

Every test runs against a fresh in-memory SQLite schema. Sales can be created
through the service (timestamped "now") or inserted directly with an explicit
created_at via `sale_factory`, which is how range boundaries are exercised.
"""
import os

os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from tiendapos.core.database import SessionLocal, engine
from tiendapos.core.folio_service import generate_folio
from tiendapos.core.security import create_token_pair
from tiendapos.main import app
from tiendapos.models import Base, Product, Sale, SaleItem, SalePayment
from tiendapos.models.sale import SALE_CANCELLED, SALE_COMPLETED
from tiendapos.services import user_service


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def _make_user(db, username, role):
    return user_service.create_user(db, username, "secret123", role=role)


@pytest.fixture
def admin(db):
    return _make_user(db, "admin", "admin")


@pytest.fixture
def supervisor(db):
    return _make_user(db, "supervisor", "supervisor")


@pytest.fixture
def cashier(db):
    return _make_user(db, "cajero", "cajero")


def _bearer(user) -> dict:
    access, _ = create_token_pair(user.id)
    return {"Authorization": f"Bearer {access}"}


@pytest.fixture
def auth_headers():
    """Build Authorization headers for a user without going through /auth/login."""
    return _bearer


@pytest.fixture
def product(db):
    p = Product(name="Playera básica", sku="PLAY-001", cost=Decimal("40.00"),
                price_retail=Decimal("100.00"), stock=10)
    db.add(p)
    db.commit()
    db.refresh(p)
    return p


@pytest.fixture
def sale_factory(db):
    """Insert a sale with a single payment at an explicit timestamp."""

    def _create(total, method="Efectivo", created_at=None, cost="0", cancelled=False, payments=None):
        total = Decimal(str(total))
        sale = Sale(
            folio=generate_folio(db, "VENTA"),
            subtotal=total,
            discount=Decimal("0"),
            total=total,
            cashier="cajero",
            status=SALE_CANCELLED if cancelled else SALE_COMPLETED,
            created_at=created_at or datetime(2024, 1, 1, 12, 0),
        )
        sale.items.append(SaleItem(
            name="Artículo",
            quantity=1,
            unit_price=total,
            unit_cost=Decimal(str(cost)),
            subtotal=total,
        ))
        for m, amount in (payments or [(method, total)]):
            sale.payments.append(SalePayment(method=m, amount=Decimal(str(amount))))
        db.add(sale)
        db.commit()
        db.refresh(sale)
        return sale

    return _create
