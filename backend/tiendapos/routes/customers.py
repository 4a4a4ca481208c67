from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, condecimal
from sqlalchemy.orm import Session

from tiendapos.core.database import get_db
from tiendapos.core.deps import get_actor
from tiendapos.core.roles import Actor
from tiendapos.services import customer_service


router = APIRouter()


class CustomerCreate(BaseModel):
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    credit_limit: condecimal(max_digits=10, decimal_places=2) = Decimal("0")


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    credit_limit: Optional[condecimal(max_digits=10, decimal_places=2)] = None
    is_active: Optional[bool] = None


class CustomerOut(BaseModel):
    id: int
    name: str
    phone: Optional[str]
    email: Optional[str]
    address: Optional[str]
    notes: Optional[str]
    credit_limit: float
    current_balance: float
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class CustomerPaymentIn(BaseModel):
    amount: Optional[float] = None
    method: Optional[str] = None
    note: Optional[str] = None
    sale_id: Optional[int] = None
    create_cash_movement: bool = False


class CustomerPaymentOut(BaseModel):
    id: int
    customer_id: int
    sale_id: Optional[int]
    amount: float
    method: str
    note: Optional[str]
    username: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


@router.get("/", response_model=List[CustomerOut])
def list_customers(
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return customer_service.list_customers(db, search)


@router.post("/", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return customer_service.create_customer(db, **data.model_dump())


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return customer_service.get_customer(db, customer_id)


@router.put("/{customer_id}", response_model=CustomerOut)
def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return customer_service.update_customer(db, customer_id, **data.model_dump(exclude_unset=True))


@router.get("/{customer_id}/payments", response_model=List[CustomerPaymentOut])
def list_customer_payments(
    customer_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return customer_service.list_payments(db, customer_id)


@router.post("/{customer_id}/payments", response_model=CustomerPaymentOut, status_code=status.HTTP_201_CREATED)
def register_customer_payment(
    customer_id: int,
    data: CustomerPaymentIn,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Registrar abono; opcionalmente también como entrada de efectivo en caja."""
    return customer_service.register_payment(
        db,
        actor,
        customer_id,
        amount=data.amount,
        method=data.method,
        note=data.note,
        create_cash_movement=data.create_cash_movement,
        sale_id=data.sale_id,
    )
