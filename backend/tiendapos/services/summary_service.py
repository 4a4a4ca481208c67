"""
Resúmenes de solo lectura: caja en vivo desde el último corte y reporte diario.
Nunca persiste nada.
"""
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from tiendapos.core.serialization_helpers import to_money
from tiendapos.core.time_utils import EPOCH, to_naive_utc, utcnow
from tiendapos.models.product import Product
from tiendapos.services.cash_cut_service import find_last_cut
from tiendapos.services.reconciliation_service import ReconciliationMode, aggregate_ledgers, project_live


def live_summary(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Caja teórica desde el último corte (o EPOCH) hasta ahora.

    Returns:
        LiveComputation más la referencia `last_cut` (CashCut o None)
    """
    last_cut = find_last_cut(db)
    range_start = last_cut.range_end if last_cut else EPOCH
    range_end = to_naive_utc(now) or utcnow()
    # Reloj atrasado respecto al último corte: rango vacío en lugar de error
    if range_end <= range_start:
        range_end = range_start + timedelta(microseconds=1)

    totals = aggregate_ledgers(db, range_start, range_end, ReconciliationMode.live)
    summary: Dict[str, Any] = dict(project_live(totals))
    summary['last_cut'] = last_cut
    return summary


def daily_summary(db: Session, day: Optional[date] = None) -> Dict[str, Any]:
    """Ventas activas de un día (UTC) más la valuación del inventario actual."""
    day = day or utcnow().date()
    # aggregate_ledgers excluye el límite inferior
    range_start = datetime.combine(day, time.min) - timedelta(microseconds=1)
    range_end = datetime.combine(day, time.max)

    totals = aggregate_ledgers(db, range_start, range_end, ReconciliationMode.shift)

    inventory_cost_value = Decimal("0.00")
    inventory_retail_value = Decimal("0.00")
    for p in db.query(Product).all():
        stock = int(p.stock or 0)
        inventory_cost_value += to_money(p.cost) * stock
        inventory_retail_value += to_money(p.price_retail) * stock

    return {
        'date': day,
        'total_sales': totals['total_sales'],
        'total_cost': totals['total_cost'],
        'profit': totals['profit'],
        'sales_count': totals['sales_count'],
        'inventory_cost_value': inventory_cost_value,
        'inventory_retail_value': inventory_retail_value,
    }
