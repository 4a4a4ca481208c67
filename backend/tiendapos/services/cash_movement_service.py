"""
Movimientos manuales de la caja (apertura, ingresos, gastos, abonos, ajustes).
La dirección siempre se deriva del tipo; un movimiento no se edita ni se borra.
"""
import logging
from enum import Enum
from typing import List, Optional

from sqlalchemy.orm import Session

from tiendapos.core.database import commit_or_rollback
from tiendapos.core.errors import ValidationError
from tiendapos.core.roles import Actor
from tiendapos.core.serialization_helpers import to_money
from tiendapos.core.time_utils import utcnow
from tiendapos.models.cash_movement import CashMovement


logger = logging.getLogger(__name__)


class CashMovementType(str, Enum):
    opening = "opening"
    income = "income"
    expense = "expense"
    customer_payment = "customerPayment"
    adjustment = "adjustment"


def direction_for(movement_type: CashMovementType) -> str:
    """expense sale de la caja; todo lo demás entra."""
    return "out" if movement_type == CashMovementType.expense else "in"


def _parse_type(raw) -> CashMovementType:
    if not raw:
        raise ValidationError("El tipo de movimiento es requerido")
    try:
        return CashMovementType(raw)
    except ValueError:
        raise ValidationError(f"Tipo de movimiento inválido: {raw}")


def build_movement(
    actor: Actor,
    movement_type,
    amount,
    description: Optional[str] = None,
    sale_id: Optional[int] = None,
    customer_id: Optional[int] = None,
) -> CashMovement:
    """Valida y arma el movimiento sin agregarlo a la sesión."""
    mtype = _parse_type(movement_type)
    if amount is None:
        raise ValidationError("El monto es requerido")
    value = to_money(amount)
    if value <= 0:
        raise ValidationError("El monto debe ser mayor a 0")

    return CashMovement(
        type=mtype.value,
        direction=direction_for(mtype),
        amount=value,
        description=description,
        user_id=actor.id,
        username=actor.username,
        sale_id=sale_id,
        customer_id=customer_id,
        created_at=utcnow(),
    )


def create_movement(
    db: Session,
    actor: Actor,
    movement_type,
    amount,
    description: Optional[str] = None,
    sale_id: Optional[int] = None,
    customer_id: Optional[int] = None,
) -> CashMovement:
    movement = build_movement(actor, movement_type, amount, description, sale_id, customer_id)
    db.add(movement)
    commit_or_rollback(db, "registering cash movement")
    db.refresh(movement)
    logger.info(
        "Cash movement %s %s %s registered by %s",
        movement.type, movement.direction, movement.amount, actor.username,
    )
    return movement


def list_movements(db: Session, movement_type: Optional[str] = None, limit: int = 200) -> List[CashMovement]:
    query = db.query(CashMovement)
    if movement_type:
        query = query.filter(CashMovement.type == _parse_type(movement_type).value)
    return query.order_by(CashMovement.created_at.desc(), CashMovement.id.desc()).limit(limit).all()
