from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, condecimal
from sqlalchemy.orm import Session

from tiendapos.core.database import get_db
from tiendapos.core.deps import get_actor, require_permission
from tiendapos.core.roles import Actor, Permission
from tiendapos.services import product_service


router = APIRouter()


class ProductBase(BaseModel):
    name: str
    sku: str
    barcode: Optional[str] = None
    category: Optional[str] = None
    cost: condecimal(max_digits=10, decimal_places=2, ge=0) = 0
    price_retail: condecimal(max_digits=10, decimal_places=2, ge=0) = 0
    price_wholesale: Optional[condecimal(max_digits=10, decimal_places=2, ge=0)] = None
    stock: int = 0
    min_stock: int = 0
    is_active: bool = True


class ProductOut(BaseModel):
    id: int
    name: str
    sku: str
    barcode: Optional[str]
    category: Optional[str]
    cost: float
    price_retail: float
    price_wholesale: Optional[float]
    stock: int
    min_stock: int
    is_active: bool

    class Config:
        from_attributes = True


@router.get("/", response_model=List[ProductOut])
def list_products(
    q: Optional[str] = Query(None, description="Search by name, sku, barcode or category"),
    active: Optional[bool] = Query(None, description="Filter by active status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=2000),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    logging.getLogger(__name__).info("list_products q=%s skip=%s limit=%s", q, skip, limit)
    return product_service.list_products(db, q=q, active=active, skip=skip, limit=limit)


@router.post("/", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductBase,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_permission(Permission.can_manage_products)),
):
    return product_service.create_product(db, data.model_dump())


@router.get("/{product_id}", response_model=ProductOut)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return product_service.get_product(db, product_id)


class ProductUpdate(BaseModel):
    # La existencia no se edita aquí: usar /inventory/add o /inventory/adjust
    name: Optional[str] = None
    sku: Optional[str] = None
    barcode: Optional[str] = None
    category: Optional[str] = None
    cost: Optional[condecimal(max_digits=10, decimal_places=2, ge=0)] = None
    price_retail: Optional[condecimal(max_digits=10, decimal_places=2, ge=0)] = None
    price_wholesale: Optional[condecimal(max_digits=10, decimal_places=2, ge=0)] = None
    min_stock: Optional[int] = None
    is_active: Optional[bool] = None


@router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_permission(Permission.can_manage_products)),
):
    return product_service.update_product(db, product_id, data.model_dump(exclude_unset=True))


@router.delete("/{product_id}", response_model=ProductOut)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_permission(Permission.can_manage_products)),
):
    """Baja lógica; el historial de ventas y el kardex se conservan."""
    return product_service.deactivate_product(db, product_id)
