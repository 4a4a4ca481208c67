from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, condecimal
from sqlalchemy.orm import Session

from tiendapos.core.database import get_db
from tiendapos.core.deps import get_actor
from tiendapos.core.roles import Actor
from tiendapos.services import sales_service


router = APIRouter()


class SaleItemIn(BaseModel):
    product_id: Optional[int] = None
    name: Optional[str] = None
    variant_text: Optional[str] = None
    quantity: int = Field(1, ge=1)
    unit_price: Optional[condecimal(max_digits=10, decimal_places=2, ge=0)] = None
    unit_cost: Optional[condecimal(max_digits=10, decimal_places=2, ge=0)] = None


class PaymentIn(BaseModel):
    method: str
    amount: condecimal(max_digits=10, decimal_places=2)


class SaleCreate(BaseModel):
    items: List[SaleItemIn] = []
    payments: List[PaymentIn] = []
    discount: condecimal(max_digits=10, decimal_places=2) = Decimal("0")
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None


class SaleCancel(BaseModel):
    reason: Optional[str] = None


class SaleItemOut(BaseModel):
    product_id: Optional[int]
    name: str
    variant_text: Optional[str]
    quantity: int
    unit_price: float
    unit_cost: float
    subtotal: float

    class Config:
        from_attributes = True


class PaymentOut(BaseModel):
    method: str
    amount: float

    class Config:
        from_attributes = True


class SaleOut(BaseModel):
    id: int
    folio: str
    subtotal: float
    discount: float
    total: float
    customer_id: Optional[int]
    customer_name: Optional[str]
    cashier: Optional[str]
    status: str
    cancel_reason: Optional[str]
    cancelled_at: Optional[datetime]
    created_at: datetime
    items: List[SaleItemOut]
    payments: List[PaymentOut]

    class Config:
        from_attributes = True


@router.get("/", response_model=List[SaleOut])
def list_sales(
    limit: int = Query(100, ge=1, le=1000),
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return sales_service.list_sales(db, limit=limit, status=status_filter)


@router.post("/", response_model=SaleOut, status_code=status.HTTP_201_CREATED)
def create_sale(
    data: SaleCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return sales_service.create_sale(
        db,
        actor,
        items=[item.model_dump() for item in data.items],
        payments=[p.model_dump() for p in data.payments],
        discount=data.discount,
        customer_id=data.customer_id,
        customer_name=data.customer_name,
    )


@router.get("/{sale_id}", response_model=SaleOut)
def get_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return sales_service.get_sale(db, sale_id)


@router.post("/{sale_id}/cancel", response_model=SaleOut)
def cancel_sale(
    sale_id: int,
    data: Optional[SaleCancel] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    reason = data.reason if data else None
    return sales_service.cancel_sale(db, actor, sale_id, reason=reason)
