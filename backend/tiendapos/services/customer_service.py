from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from tiendapos.core.database import commit_or_rollback
from tiendapos.core.errors import NotFoundError, ValidationError
from tiendapos.core.payment_methods import normalize_payment_method
from tiendapos.core.roles import Actor
from tiendapos.core.serialization_helpers import to_money
from tiendapos.core.time_utils import utcnow
from tiendapos.models.customer import Customer, CustomerPayment
from tiendapos.services.cash_movement_service import CashMovementType, build_movement


logger = logging.getLogger(__name__)


def _normalize_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def create_customer(
    db: Session,
    name: str,
    phone: Optional[str] = None,
    email: Optional[str] = None,
    address: Optional[str] = None,
    notes: Optional[str] = None,
    credit_limit=0,
) -> Customer:
    normalized_name = _normalize_text(name)
    if not normalized_name:
        raise ValidationError("El nombre del cliente es requerido")
    limit = to_money(credit_limit)
    if limit < 0:
        raise ValidationError("El límite de crédito no puede ser negativo")

    customer = Customer(
        name=normalized_name,
        phone=_normalize_text(phone),
        email=_normalize_text(email),
        address=_normalize_text(address),
        notes=_normalize_text(notes),
        credit_limit=limit,
        current_balance=Decimal("0.00"),
    )
    db.add(customer)
    commit_or_rollback(db, "creating customer")
    db.refresh(customer)
    return customer


def list_customers(db: Session, search: Optional[str] = None) -> List[Customer]:
    query = db.query(Customer)
    term = _normalize_text(search)
    if term:
        like = f"%{term.lower()}%"
        query = query.filter(
            or_(
                func.lower(Customer.name).like(like),
                func.lower(Customer.phone).like(like),
            )
        )
    return query.order_by(Customer.name.asc()).all()


def get_customer(db: Session, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise NotFoundError("Cliente no encontrado")
    return customer


def register_payment(
    db: Session,
    actor: Actor,
    customer_id: int,
    amount,
    method,
    note: Optional[str] = None,
    create_cash_movement: bool = False,
    sale_id: Optional[int] = None,
) -> CustomerPayment:
    """
    Registra un abono del cliente.
    - El saldo baja por el monto y nunca queda negativo.
    - Con create_cash_movement se registra además la entrada de efectivo
      (tipo customerPayment) en el mismo commit.
    """
    value = to_money(amount)
    if value <= 0:
        raise ValidationError("El monto del abono debe ser mayor a 0")
    payment_method = normalize_payment_method(method)

    customer = get_customer(db, customer_id)

    payment = CustomerPayment(
        customer_id=customer.id,
        sale_id=sale_id,
        amount=value,
        method=payment_method.value,
        note=_normalize_text(note),
        user_id=actor.id,
        username=actor.username,
        created_at=utcnow(),
    )
    db.add(payment)

    new_balance = to_money(customer.current_balance) - value
    customer.current_balance = max(new_balance, Decimal("0.00"))
    customer.updated_at = utcnow()

    if create_cash_movement:
        db.add(build_movement(
            actor,
            CashMovementType.customer_payment,
            value,
            description=note or f"Abono de cliente {customer.name} ({payment_method.value})",
            sale_id=sale_id,
            customer_id=customer.id,
        ))

    commit_or_rollback(db, "registering customer payment")
    db.refresh(payment)
    logger.info("Customer %s paid %s (%s)", customer.id, value, payment_method.value)
    return payment


def list_payments(db: Session, customer_id: int) -> List[CustomerPayment]:
    get_customer(db, customer_id)
    return (
        db.query(CustomerPayment)
        .filter(CustomerPayment.customer_id == customer_id)
        .order_by(CustomerPayment.created_at.desc(), CustomerPayment.id.desc())
        .all()
    )


def update_customer(
    db: Session,
    customer_id: int,
    name: Optional[str] = None,
    phone: Optional[str] = None,
    email: Optional[str] = None,
    address: Optional[str] = None,
    notes: Optional[str] = None,
    credit_limit=None,
    is_active: Optional[bool] = None,
) -> Customer:
    """Solo se modifican los campos enviados; el saldo cambia únicamente con ventas a crédito y abonos."""
    customer = get_customer(db, customer_id)

    if name is not None:
        normalized_name = _normalize_text(name)
        if not normalized_name:
            raise ValidationError("El nombre del cliente es requerido")
        customer.name = normalized_name
    if credit_limit is not None:
        limit = to_money(credit_limit)
        if limit < 0:
            raise ValidationError("El límite de crédito no puede ser negativo")
        customer.credit_limit = limit
    for field, value in (('phone', phone), ('email', email), ('address', address), ('notes', notes)):
        if value is not None:
            setattr(customer, field, _normalize_text(value))
    if is_active is not None:
        customer.is_active = is_active

    customer.updated_at = utcnow()
    commit_or_rollback(db, "updating customer")
    db.refresh(customer)
    logger.info("Customer %s updated", customer.id)
    return customer
