from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet


class Role(str, Enum):
    admin = "admin"
    supervisor = "supervisor"
    encargado = "encargado"
    cajero = "cajero"


class Permission(str, Enum):
    can_sell = "can_sell"
    can_manage_products = "can_manage_products"
    can_see_reports = "can_see_reports"
    can_do_cash_cuts = "can_do_cash_cuts"
    can_cancel_sales = "can_cancel_sales"
    can_manage_users = "can_manage_users"


# Permisos por defecto al crear un usuario con ese rol
ROLE_PERMISSIONS = {
    Role.admin: frozenset(Permission),
    Role.supervisor: frozenset({
        Permission.can_sell,
        Permission.can_manage_products,
        Permission.can_see_reports,
        Permission.can_do_cash_cuts,
        Permission.can_cancel_sales,
    }),
    Role.encargado: frozenset({
        Permission.can_sell,
        Permission.can_do_cash_cuts,
        Permission.can_see_reports,
    }),
    Role.cajero: frozenset({Permission.can_sell}),
}


@dataclass(frozen=True)
class Actor:
    """Who performs an operation. Built once per request from the authenticated user."""
    id: int
    username: str
    permissions: FrozenSet[Permission] = field(default_factory=frozenset)

    def can(self, permission: Permission) -> bool:
        return permission in self.permissions
