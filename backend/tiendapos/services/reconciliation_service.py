"""
Motor de conciliación de caja (corte de caja).

Una sola función de agregación (`aggregate_ledgers`) recorre las ventas y los
movimientos de caja de un intervalo semiabierto (from, to]. Cada modo proyecta
ese mismo resultado:

- modo corte (`reconcile`): solo ventas; esperado = apertura + efectivo de ventas.
- modo en vivo (`project_live`): ventas + movimientos; teórico = efectivo de
  ventas + entradas - salidas.

Nada aquí escribe en la base de datos.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, TypedDict

from sqlalchemy.orm import Session, selectinload

from tiendapos.core.errors import EmptyRangeError, ValidationError
from tiendapos.core.payment_methods import CASH_METHOD
from tiendapos.core.serialization_helpers import to_money
from tiendapos.models.cash_movement import CashMovement
from tiendapos.models.sale import SALE_CANCELLED, Sale


ZERO = Decimal("0.00")


class ReconciliationMode(str, Enum):
    shift = "shift"
    live = "live"


class MovementBreakdown(TypedDict):
    """Movimientos manuales agrupados por tipo."""
    openings: Decimal
    incomes: Decimal
    expenses: Decimal
    customer_payments: Decimal
    adjustments: Decimal


class MovementTotals(TypedDict):
    total_in: Decimal
    total_out: Decimal
    breakdown: MovementBreakdown


class LedgerTotals(TypedDict):
    """Resultado de `aggregate_ledgers`, común a ambos modos."""
    range_start: datetime
    range_end: datetime
    sales_count: int
    total_sales: Decimal
    total_cost: Decimal
    profit: Decimal
    totals_by_method: Dict[str, Decimal]
    cash_from_sales: Decimal
    cancelled_sales_count: int
    cancelled_sales_total: Decimal
    movements: Optional[MovementTotals]


class CutComputation(TypedDict):
    """Modo corte: lo que se persiste como CashCut."""
    range_start: datetime
    range_end: datetime
    opening_amount: Decimal
    closing_amount: Decimal
    expected_cash: Decimal
    difference: Decimal
    total_sales: Decimal
    total_cost: Decimal
    profit: Decimal
    sales_count: int
    cancelled_sales_count: int
    cancelled_sales_total: Decimal
    totals_by_method: Dict[str, Decimal]


class LiveComputation(TypedDict):
    """Modo en vivo: resumen de caja desde el último corte."""
    range_start: datetime
    range_end: datetime
    cash_from_sales: Decimal
    total_in: Decimal
    total_out: Decimal
    theoretical_cash: Decimal
    breakdown: MovementBreakdown
    sales_count: int
    total_sales: Decimal
    totals_by_method: Dict[str, Decimal]


# CashMovement.type -> llave del desglose
_BREAKDOWN_KEYS = {
    'opening': 'openings',
    'income': 'incomes',
    'expense': 'expenses',
    'customerPayment': 'customer_payments',
    'adjustment': 'adjustments',
}


def _validate_range(range_start: datetime, range_end: datetime) -> None:
    if range_start is None or range_end is None:
        raise ValidationError("El rango requiere fecha inicial y final")
    if range_start >= range_end:
        raise ValidationError("La fecha inicial debe ser menor a la final")


def _get_sales_in_range(db: Session, range_start: datetime, range_end: datetime) -> List[Sale]:
    """Todas las ventas (completadas y canceladas) con created_at en (start, end]."""
    return (
        db.query(Sale)
        .options(selectinload(Sale.items), selectinload(Sale.payments))
        .filter(Sale.created_at > range_start, Sale.created_at <= range_end)
        .order_by(Sale.created_at.asc(), Sale.id.asc())
        .all()
    )


def sum_cash_movements(db: Session, range_start: datetime, range_end: datetime) -> MovementTotals:
    """
    Suma los movimientos de caja del intervalo (start, end] por dirección y por tipo.
    """
    movements = (
        db.query(CashMovement)
        .filter(CashMovement.created_at > range_start, CashMovement.created_at <= range_end)
        .all()
    )

    total_in = ZERO
    total_out = ZERO
    breakdown: Dict[str, Decimal] = {key: ZERO for key in _BREAKDOWN_KEYS.values()}

    for m in movements:
        amount = to_money(m.amount)
        if m.direction == 'in':
            total_in += amount
        else:
            total_out += amount

        key = _BREAKDOWN_KEYS.get(m.type)
        if key:
            breakdown[key] += amount

    return MovementTotals(
        total_in=total_in,
        total_out=total_out,
        breakdown=MovementBreakdown(**breakdown),
    )


def aggregate_ledgers(
    db: Session,
    range_start: datetime,
    range_end: datetime,
    mode: ReconciliationMode = ReconciliationMode.shift,
) -> LedgerTotals:
    """
    Agrega ventas (y en modo live también movimientos de caja) del intervalo (start, end].

    Las ventas canceladas solo alimentan cancelled_sales_count/total; nunca
    afectan totales, costo, utilidad ni formas de pago.

    Args:
        db: Sesión de base de datos
        range_start: Límite inferior (excluido)
        range_end: Límite superior (incluido)
        mode: shift solo lee ventas; live también suma CashMovement

    Returns:
        LedgerTotals con montos cuantizados a centavos
    """
    _validate_range(range_start, range_end)

    sales = _get_sales_in_range(db, range_start, range_end)
    active_sales = [s for s in sales if s.status != SALE_CANCELLED]
    cancelled_sales = [s for s in sales if s.status == SALE_CANCELLED]

    total_sales = ZERO
    total_cost = ZERO
    totals_by_method: Dict[str, Decimal] = {}

    for sale in active_sales:
        total_sales += to_money(sale.total)

        for item in sale.items:
            total_cost += to_money(to_money(item.unit_cost) * int(item.quantity or 0))

        for payment in sale.payments:
            method = payment.method
            totals_by_method[method] = totals_by_method.get(method, ZERO) + to_money(payment.amount)

    cancelled_total = sum((to_money(s.total) for s in cancelled_sales), ZERO)

    return LedgerTotals(
        range_start=range_start,
        range_end=range_end,
        sales_count=len(active_sales),
        total_sales=total_sales,
        total_cost=total_cost,
        profit=total_sales - total_cost,
        totals_by_method=totals_by_method,
        cash_from_sales=totals_by_method.get(CASH_METHOD.value, ZERO),
        cancelled_sales_count=len(cancelled_sales),
        cancelled_sales_total=cancelled_total,
        movements=sum_cash_movements(db, range_start, range_end) if mode == ReconciliationMode.live else None,
    )


def project_shift(totals: LedgerTotals, opening_amount, closing_amount) -> CutComputation:
    """Proyección del modo corte sobre el agregado."""
    opening = to_money(opening_amount)
    closing = to_money(closing_amount)
    if opening < ZERO or closing < ZERO:
        raise ValidationError("Los montos de apertura y cierre no pueden ser negativos")

    expected_cash = opening + totals['cash_from_sales']

    return CutComputation(
        range_start=totals['range_start'],
        range_end=totals['range_end'],
        opening_amount=opening,
        closing_amount=closing,
        expected_cash=expected_cash,
        difference=closing - expected_cash,
        total_sales=totals['total_sales'],
        total_cost=totals['total_cost'],
        profit=totals['profit'],
        sales_count=totals['sales_count'],
        cancelled_sales_count=totals['cancelled_sales_count'],
        cancelled_sales_total=totals['cancelled_sales_total'],
        totals_by_method=dict(totals['totals_by_method']),
    )


def project_live(totals: LedgerTotals) -> LiveComputation:
    """Proyección del modo en vivo; requiere un agregado con movimientos."""
    movements = totals['movements']
    if movements is None:
        raise ValueError("live projection requires aggregate_ledgers(mode=ReconciliationMode.live)")

    theoretical_cash = totals['cash_from_sales'] + movements['total_in'] - movements['total_out']

    return LiveComputation(
        range_start=totals['range_start'],
        range_end=totals['range_end'],
        cash_from_sales=totals['cash_from_sales'],
        total_in=movements['total_in'],
        total_out=movements['total_out'],
        theoretical_cash=theoretical_cash,
        breakdown=movements['breakdown'],
        sales_count=totals['sales_count'],
        total_sales=totals['total_sales'],
        totals_by_method=dict(totals['totals_by_method']),
    )


def reconcile(
    db: Session,
    range_start: datetime,
    range_end: datetime,
    opening_amount,
    closing_amount,
) -> CutComputation:
    """
    Conciliación en modo corte sobre (range_start, range_end].

    Raises:
        ValidationError: rango o montos inválidos
        EmptyRangeError: no hay ventas activas en el rango
    """
    totals = aggregate_ledgers(db, range_start, range_end, ReconciliationMode.shift)
    if totals['sales_count'] == 0:
        raise EmptyRangeError()
    return project_shift(totals, opening_amount, closing_amount)
