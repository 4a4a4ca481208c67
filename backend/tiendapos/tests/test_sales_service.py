from decimal import Decimal

import pytest

from tiendapos.core.errors import AuthorizationError, NotFoundError, ValidationError
from tiendapos.models import Customer
from tiendapos.models.sale import SALE_CANCELLED
from tiendapos.services import sales_service


def test_create_sale_snapshots_price_and_cost(db, cashier, product):
    sale = sales_service.create_sale(
        db, cashier.to_actor(),
        items=[{"product_id": product.id, "quantity": 2}],
        payments=[{"method": "efectivo", "amount": 200}],
    )

    assert sale.folio == "FA-000001"
    assert sale.total == Decimal("200.00")
    assert sale.cashier == "cajero"
    assert sale.items[0].unit_cost == Decimal("40.00")
    assert sale.payments[0].method == "Efectivo"
    db.refresh(product)
    assert product.stock == 8


def test_discount_and_split_payments(db, cashier, product):
    sale = sales_service.create_sale(
        db, cashier.to_actor(),
        items=[{"product_id": product.id, "quantity": 1},
               {"name": "Bolsa de regalo", "unit_price": "15.50", "quantity": 1}],
        payments=[{"method": "Tarjeta - Debito", "amount": "60"},
                  {"method": "EFECTIVO", "amount": "45.50"}],
        discount=Decimal("10"),
    )

    assert sale.subtotal == Decimal("115.50")
    assert sale.total == Decimal("105.50")
    assert [p.method for p in sale.payments] == ["Tarjeta – Débito", "Efectivo"]


def test_payments_must_cover_total(db, cashier, product):
    with pytest.raises(ValidationError):
        sales_service.create_sale(
            db, cashier.to_actor(),
            items=[{"product_id": product.id, "quantity": 1}],
            payments=[{"method": "Efectivo", "amount": 90}],
        )


def test_unknown_payment_method_is_rejected(db, cashier, product):
    with pytest.raises(ValidationError):
        sales_service.create_sale(
            db, cashier.to_actor(),
            items=[{"product_id": product.id, "quantity": 1}],
            payments=[{"method": "Mixto", "amount": 100}],
        )


def test_insufficient_stock(db, cashier, product):
    with pytest.raises(ValidationError):
        sales_service.create_sale(
            db, cashier.to_actor(),
            items=[{"product_id": product.id, "quantity": 6},
                   {"product_id": product.id, "quantity": 5}],
            payments=[{"method": "Efectivo", "amount": 1100}],
        )


def test_unknown_product(db, cashier):
    with pytest.raises(NotFoundError):
        sales_service.create_sale(
            db, cashier.to_actor(),
            items=[{"product_id": 999, "quantity": 1}],
            payments=[{"method": "Efectivo", "amount": 10}],
        )


def test_credit_sale_requires_customer_and_charges_balance(db, cashier, product):
    actor = cashier.to_actor()
    with pytest.raises(ValidationError):
        sales_service.create_sale(
            db, actor,
            items=[{"product_id": product.id, "quantity": 1}],
            payments=[{"method": "Crédito", "amount": 100}],
        )

    customer = Customer(name="Doña Mary", credit_limit=Decimal("1000"), current_balance=Decimal("0"))
    db.add(customer)
    db.commit()

    sale = sales_service.create_sale(
        db, actor,
        items=[{"product_id": product.id, "quantity": 1}],
        payments=[{"method": "credito", "amount": 100}],
        customer_id=customer.id,
    )

    db.refresh(customer)
    assert customer.current_balance == Decimal("100.00")
    assert sale.customer_name == "Doña Mary"


def test_cancel_restores_stock(db, admin, cashier, product):
    sale = sales_service.create_sale(
        db, cashier.to_actor(),
        items=[{"product_id": product.id, "quantity": 3}],
        payments=[{"method": "Efectivo", "amount": 300}],
    )

    cancelled = sales_service.cancel_sale(db, admin.to_actor(), sale.id, reason="Error de captura")

    assert cancelled.status == SALE_CANCELLED
    assert cancelled.cancel_reason == "Error de captura"
    assert cancelled.cancelled_at is not None
    db.refresh(product)
    assert product.stock == 10

    with pytest.raises(ValidationError):
        sales_service.cancel_sale(db, admin.to_actor(), sale.id)


def test_cashier_cannot_cancel(db, cashier, product):
    sale = sales_service.create_sale(
        db, cashier.to_actor(),
        items=[{"product_id": product.id, "quantity": 1}],
        payments=[{"method": "Efectivo", "amount": 100}],
    )
    with pytest.raises(AuthorizationError):
        sales_service.cancel_sale(db, cashier.to_actor(), sale.id)


def test_list_sales_filters_by_status(db, cashier, supervisor, product):
    actor = cashier.to_actor()
    payload = dict(items=[{"product_id": product.id, "quantity": 1}],
                   payments=[{"method": "Efectivo", "amount": 100}])
    first = sales_service.create_sale(db, actor, **payload)
    sales_service.create_sale(db, actor, **payload)
    sales_service.cancel_sale(db, supervisor.to_actor(), first.id)

    assert len(sales_service.list_sales(db)) == 2
    assert [s.id for s in sales_service.list_sales(db, status=SALE_CANCELLED)] == [first.id]


def test_fully_discounted_sale_needs_no_payments(db, cashier, product):
    sale = sales_service.create_sale(
        db, cashier.to_actor(),
        items=[{"product_id": product.id, "quantity": 1}],
        payments=[],
        discount=Decimal("100"),
    )

    assert sale.total == Decimal("0.00")
    assert sale.payments == []
    db.refresh(product)
    assert product.stock == 9


def test_payments_required_when_total_is_positive(db, cashier, product):
    with pytest.raises(ValidationError):
        sales_service.create_sale(
            db, cashier.to_actor(),
            items=[{"product_id": product.id, "quantity": 1}],
            payments=[],
            discount=Decimal("99.99"),
        )
