from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from tiendapos.core.database import get_db
from tiendapos.core.deps import require_permission
from tiendapos.core.roles import Actor, Permission
from tiendapos.services import summary_service


router = APIRouter()


class DailySummaryReport(BaseModel):
    date: date
    total_sales: float
    total_cost: float
    profit: float
    sales_count: int
    inventory_cost_value: float  # Stock x costo
    inventory_retail_value: float  # Stock x precio de venta


@router.get("/summary", response_model=DailySummaryReport)
def get_daily_summary(
    for_date: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_permission(Permission.can_see_reports)),
):
    """Ventas del día (por defecto hoy) y valor del inventario."""
    return summary_service.daily_summary(db, for_date)
