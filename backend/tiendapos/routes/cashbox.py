from datetime import datetime
from typing import Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from tiendapos.core.database import get_db
from tiendapos.core.deps import get_actor
from tiendapos.core.roles import Actor
from tiendapos.routes.cashcuts import CashCutOut
from tiendapos.services import summary_service


router = APIRouter()


class BreakdownOut(BaseModel):
    openings: float
    incomes: float
    expenses: float
    customer_payments: float
    adjustments: float


class CashboxSummaryOut(BaseModel):
    range_start: datetime
    range_end: datetime
    cash_from_sales: float
    total_in: float
    total_out: float
    theoretical_cash: float
    breakdown: BreakdownOut
    sales_count: int
    total_sales: float
    totals_by_method: Dict[str, float]
    last_cut: Optional[CashCutOut]


@router.get("/summary", response_model=CashboxSummaryOut)
def get_cashbox_summary(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Caja teórica desde el último corte."""
    return summary_service.live_summary(db)
