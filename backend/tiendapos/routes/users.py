from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from tiendapos.core.database import get_db
from tiendapos.core.deps import require_permission
from tiendapos.core.roles import Actor, Permission, Role
from tiendapos.services import user_service


router = APIRouter()

manage_users = require_permission(Permission.can_manage_users)


class UserCreate(BaseModel):
    username: str
    password: str
    role: Role = Role.cajero
    # None = permisos por defecto del rol
    permissions: Optional[List[Permission]] = None


class UserOut(BaseModel):
    id: int
    username: str
    role: str
    is_active: bool
    can_sell: bool
    can_manage_products: bool
    can_see_reports: bool
    can_do_cash_cuts: bool
    can_cancel_sales: bool
    can_manage_users: bool
    created_at: datetime

    class Config:
        from_attributes = True


@router.get("/", response_model=List[UserOut])
def list_users(
    db: Session = Depends(get_db),
    actor: Actor = Depends(manage_users),
):
    return user_service.list_users(db)


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(manage_users),
):
    permissions = [p.value for p in data.permissions] if data.permissions is not None else None
    return user_service.create_user(
        db, data.username, data.password, role=data.role.value, permissions=permissions
    )


class UserUpdate(BaseModel):
    role: Optional[Role] = None
    # Solo las banderas enviadas cambian, p.ej. {"can_do_cash_cuts": true}
    permissions: Optional[Dict[Permission, bool]] = None
    is_active: Optional[bool] = None
    password: Optional[str] = None


@router.put("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    data: UserUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(manage_users),
):
    permissions = {p.value: v for p, v in data.permissions.items()} if data.permissions is not None else None
    return user_service.update_user(
        db,
        actor,
        user_id,
        role=data.role.value if data.role is not None else None,
        permissions=permissions,
        is_active=data.is_active,
        password=data.password,
    )
