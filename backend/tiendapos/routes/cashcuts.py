from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, condecimal
from sqlalchemy.orm import Session

from tiendapos.core.database import get_db
from tiendapos.core.deps import get_actor
from tiendapos.core.roles import Actor
from tiendapos.services import cash_cut_service


router = APIRouter()


class CashCutCreate(BaseModel):
    closing_amount: condecimal(max_digits=10, decimal_places=2, ge=0)
    opening_amount: Optional[condecimal(max_digits=10, decimal_places=2, ge=0)] = None
    notes: Optional[str] = None


class CutComputationOut(BaseModel):
    range_start: datetime
    range_end: datetime
    opening_amount: float
    closing_amount: float
    expected_cash: float
    difference: float
    total_sales: float
    total_cost: float
    profit: float
    sales_count: int
    cancelled_sales_count: int
    cancelled_sales_total: float
    totals_by_method: Dict[str, float]


class CashCutOut(CutComputationOut):
    id: int
    folio: str
    notes: Optional[str]
    user_id: Optional[int]
    username: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


@router.post("/", response_model=CashCutOut, status_code=status.HTTP_201_CREATED)
def create_cash_cut(
    data: CashCutCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Corte de caja desde el último corte (o el inicio) hasta ahora."""
    return cash_cut_service.close_shift(
        db,
        actor,
        closing_amount=data.closing_amount,
        opening_amount=data.opening_amount,
        notes=data.notes,
    )


@router.get("/", response_model=List[CashCutOut])
def list_cash_cuts(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return cash_cut_service.list_cuts(db, date_from, date_to)


@router.get("/preview", response_model=CutComputationOut)
def preview_cash_cut(
    closing_amount: Decimal = Query(..., ge=0),
    opening_amount: Optional[Decimal] = Query(None, ge=0),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Lo que daría el corte en este momento; no se guarda."""
    return cash_cut_service.preview_shift(
        db, actor, closing_amount=closing_amount, opening_amount=opening_amount
    )


@router.get("/{cut_id}", response_model=CashCutOut)
def get_cash_cut(
    cut_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return cash_cut_service.get_cut(db, cut_id)
