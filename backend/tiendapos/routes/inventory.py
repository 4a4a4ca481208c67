from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, condecimal
from sqlalchemy.orm import Session

from tiendapos.core.database import get_db
from tiendapos.core.deps import require_permission
from tiendapos.core.roles import Actor, Permission
from tiendapos.routes.products import ProductOut
from tiendapos.services import inventory_service


router = APIRouter()

manage_inventory = require_permission(Permission.can_manage_products)
see_inventory = require_permission(Permission.can_see_reports, Permission.can_manage_products)

Price = condecimal(max_digits=10, decimal_places=2, ge=0)


class StockEntryIn(BaseModel):
    product_id: int
    quantity: int
    cost: Optional[Price] = None
    price_retail: Optional[Price] = None
    price_wholesale: Optional[Price] = None
    reason: Optional[str] = None


class StockAdjustIn(BaseModel):
    product_id: int
    # delta con signo; si no viene se usa new_stock (conteo físico)
    delta: Optional[int] = None
    new_stock: Optional[int] = None
    cost: Optional[Price] = None
    price_retail: Optional[Price] = None
    price_wholesale: Optional[Price] = None
    reason: Optional[str] = None


class InventoryMovementOut(BaseModel):
    id: int
    product_id: int
    movement_type: str
    quantity: int
    previous_stock: int
    new_stock: int
    cost: float
    price_retail: float
    price_wholesale: Optional[float]
    reason: Optional[str]
    username: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class KardexEntryOut(BaseModel):
    date: datetime
    type: str
    reference: Optional[str]
    quantity_in: int
    quantity_out: int
    balance_after: int
    note: Optional[str]


class KardexOut(BaseModel):
    product: ProductOut
    initial_balance: int
    current_stock: int
    movements: List[KardexEntryOut]


class InventoryReportRow(BaseModel):
    id: int
    name: str
    sku: str
    category: Optional[str]
    cost: float
    price_retail: float
    stock: int
    min_stock: int
    value_cost: float
    value_retail: float
    gross_profit: float


@router.post("/add", response_model=InventoryMovementOut, status_code=status.HTTP_201_CREATED)
def add_inventory(
    data: StockEntryIn,
    db: Session = Depends(get_db),
    actor: Actor = Depends(manage_inventory),
):
    return inventory_service.add_stock(db, actor, **data.model_dump())


@router.post("/adjust", response_model=InventoryMovementOut, status_code=status.HTTP_201_CREATED)
def adjust_inventory(
    data: StockAdjustIn,
    db: Session = Depends(get_db),
    actor: Actor = Depends(manage_inventory),
):
    return inventory_service.adjust_stock(db, actor, **data.model_dump())


@router.get("/kardex", response_model=KardexOut)
def get_kardex(
    product_id: Optional[int] = Query(None),
    sku_or_barcode: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(see_inventory),
):
    return inventory_service.kardex(db, product_id=product_id, sku_or_barcode=sku_or_barcode)


@router.get("/low-stock", response_model=List[ProductOut])
def low_stock(
    db: Session = Depends(get_db),
    actor: Actor = Depends(see_inventory),
):
    return inventory_service.low_stock_products(db)


@router.get("/report", response_model=List[InventoryReportRow])
def inventory_report(
    db: Session = Depends(get_db),
    actor: Actor = Depends(see_inventory),
):
    return inventory_service.inventory_report(db)


@router.get("/movements", response_model=List[InventoryMovementOut])
def list_inventory_movements(
    product_id: Optional[int] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db),
    actor: Actor = Depends(see_inventory),
):
    return inventory_service.list_movements(db, product_id=product_id, limit=limit)
