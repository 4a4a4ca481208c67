"""
Helpers genéricos de serialización y redondeo de montos.
NO contiene lógica de negocio, solo utilidades de formato.
"""
from decimal import Decimal, ROUND_HALF_UP

from tiendapos.core.config import settings


CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Convierte cualquier número a Decimal con dos decimales"""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def money_equal(a, b) -> bool:
    """Igualdad monetaria con tolerancia de redondeo"""
    return abs(to_money(a) - to_money(b)) <= settings.money_epsilon


def serialize_decimal(value):
    """Convierte Decimal a float para serialización JSON"""
    if value is None:
        return None
    return float(value)

