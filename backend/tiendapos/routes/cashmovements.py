from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from tiendapos.core.database import get_db
from tiendapos.core.deps import get_actor
from tiendapos.core.roles import Actor
from tiendapos.services import cash_movement_service


router = APIRouter()


class CashMovementIn(BaseModel):
    type: str
    # Se valida en el servicio para responder 400 con mensaje legible
    amount: Optional[float] = None
    description: Optional[str] = None


class CashMovementOut(BaseModel):
    id: int
    type: str
    direction: str
    amount: float
    description: Optional[str]
    user_id: Optional[int]
    username: Optional[str]
    sale_id: Optional[int]
    customer_id: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


@router.get("/", response_model=List[CashMovementOut])
def list_cash_movements(
    type: Optional[str] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return cash_movement_service.list_movements(db, movement_type=type, limit=limit)


@router.post("/", response_model=CashMovementOut, status_code=status.HTTP_201_CREATED)
def create_cash_movement(
    data: CashMovementIn,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return cash_movement_service.create_movement(
        db, actor, data.type, data.amount, description=data.description
    )
