from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from tiendapos.core.database import get_db
from tiendapos.core.errors import AuthenticationError, AuthorizationError
from tiendapos.core.roles import Actor, Permission
from tiendapos.core.security import decode_token
from tiendapos.models.user import User


def get_current_user(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(None),
) -> User:
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError("No autenticado")
    token = authorization.split(" ", 1)[1]
    payload = decode_token(token)
    if not payload or payload.get("type") != "access":
        raise AuthenticationError("Token inválido")
    user_id = payload.get("sub")
    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user or not user.is_active:
        raise AuthenticationError("Usuario no encontrado")
    return user


def get_actor(user: User = Depends(get_current_user)) -> Actor:
    return user.to_actor()


def require_permission(*permissions: Permission):
    """Dependency factory: the request actor must hold at least one of ``permissions``."""

    def _require(actor: Actor = Depends(get_actor)) -> Actor:
        if not any(actor.can(p) for p in permissions):
            names = " o ".join(p.value for p in permissions)
            raise AuthorizationError(f"Permiso requerido: {names}")
        return actor

    return _require
