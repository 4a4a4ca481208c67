import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from tiendapos.core.database import commit_or_rollback
from tiendapos.core.errors import AuthenticationError, NotFoundError, ValidationError
from tiendapos.core.roles import ROLE_PERMISSIONS, Actor, Permission, Role
from tiendapos.core.security import hash_password, verify_password
from tiendapos.models.user import User


logger = logging.getLogger(__name__)

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "admin123"


def authenticate(db: Session, username: str, password: str) -> User:
    if not username or not password:
        raise ValidationError("Usuario y contraseña son obligatorios")
    user = db.query(User).filter(User.username == username.strip()).first()
    if not user or not user.is_active or not verify_password(password, user.hashed_password):
        raise AuthenticationError("Usuario o contraseña incorrectos")
    return user


def create_user(
    db: Session,
    username: str,
    password: str,
    role: str = Role.cajero.value,
    permissions: Optional[Iterable[str]] = None,
) -> User:
    """
    Crea un usuario. Sin `permissions` explícitos se usan los del rol.
    """
    username = (username or "").strip()
    if not username or not password:
        raise ValidationError("Usuario y contraseña son obligatorios")
    try:
        role_enum = Role(role)
    except ValueError:
        raise ValidationError(f"Rol inválido: {role}")
    if db.query(User).filter(User.username == username).first():
        raise ValidationError("El usuario ya existe")

    try:
        granted = ROLE_PERMISSIONS[role_enum] if permissions is None else {Permission(p) for p in permissions}
    except ValueError as exc:
        raise ValidationError(f"Permiso inválido: {exc}")

    user = User(
        username=username,
        hashed_password=hash_password(password),
        role=role_enum.value,
        is_active=True,
        **{p.value: (p in granted) for p in Permission},
    )
    db.add(user)
    commit_or_rollback(db, "creating user")
    db.refresh(user)
    logger.info("User %s created with role %s", user.username, user.role)
    return user


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.username.asc()).all()


def ensure_admin(
    db: Session,
    username: str = DEFAULT_ADMIN_USERNAME,
    password: str = DEFAULT_ADMIN_PASSWORD,
) -> User:
    """Crea el primer administrador. Solo funciona cuando aún no hay usuarios."""
    if db.query(User).count() > 0:
        raise ValidationError("Ya existen usuarios. Esta ruta solo es para la primera vez.")
    return create_user(db, username, password, role=Role.admin.value)


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("Usuario no encontrado")
    return user


def update_user(
    db: Session,
    actor: Actor,
    user_id: int,
    role: Optional[str] = None,
    permissions: Optional[Dict[str, bool]] = None,
    is_active: Optional[bool] = None,
    password: Optional[str] = None,
) -> User:
    """
    Cambia rol, banderas de permiso (parcial: solo las enviadas), estado y contraseña.
    Los cambios aplican desde la siguiente petición del usuario.
    """
    user = get_user(db, user_id)

    try:
        role_enum = Role(role) if role is not None else None
    except ValueError:
        raise ValidationError(f"Rol inválido: {role}")
    flags = {}
    for name, value in (permissions or {}).items():
        try:
            flags[Permission(name).value] = bool(value)
        except ValueError:
            raise ValidationError(f"Permiso inválido: {name}")
    if is_active is False and user.id == actor.id:
        raise ValidationError("No puedes desactivar tu propio usuario")
    if password is not None and not password.strip():
        raise ValidationError("La contraseña no puede estar vacía")

    if role_enum is not None:
        user.role = role_enum.value
    for flag, value in flags.items():
        setattr(user, flag, value)
    if is_active is not None:
        user.is_active = is_active
    if password is not None:
        user.hashed_password = hash_password(password)

    commit_or_rollback(db, "updating user")
    db.refresh(user)
    logger.info("User %s updated by %s", user.username, actor.username)
    return user
