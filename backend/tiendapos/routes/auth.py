from typing import List

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from tiendapos.core.database import get_db
from tiendapos.core.deps import get_current_user
from tiendapos.core.errors import AuthenticationError
from tiendapos.core.security import create_token_pair, decode_token
from tiendapos.models.user import User
from tiendapos.services import user_service


router = APIRouter()


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    username: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class MeResponse(BaseModel):
    id: int
    username: str
    role: str
    permissions: List[str]


class SetupResponse(BaseModel):
    message: str
    username: str


@router.post("/setup", response_model=SetupResponse, status_code=status.HTTP_201_CREATED)
def setup_admin(db: Session = Depends(get_db)):
    """Crea el usuario admin inicial; solo la primera vez."""
    user = user_service.ensure_admin(db)
    return SetupResponse(
        message="Usuario admin creado. Cambia la contraseña después.",
        username=user.username,
    )


@router.post("/login", response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    user = user_service.authenticate(db, data.username, data.password)
    access, refresh = create_token_pair(user.id)
    return TokenResponse(access_token=access, refresh_token=refresh)


@router.post("/refresh", response_model=TokenResponse)
def refresh_token_endpoint(data: RefreshRequest, db: Session = Depends(get_db)):
    payload = decode_token(data.refresh_token)
    if not payload or payload.get("type") != "refresh":
        raise AuthenticationError("Refresh token inválido")

    user = db.query(User).filter(User.id == int(payload["sub"])).first()
    if not user or not user.is_active:
        raise AuthenticationError("Usuario no encontrado")

    access, refresh = create_token_pair(user.id)
    return TokenResponse(access_token=access, refresh_token=refresh)


@router.get("/me", response_model=MeResponse)
def me(user: User = Depends(get_current_user)):
    return MeResponse(
        id=user.id,
        username=user.username,
        role=user.role,
        permissions=sorted(p.value for p in user.permissions),
    )
