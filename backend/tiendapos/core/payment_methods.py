"""
Formas de pago aceptadas por el POS.

La clasificación de efectivo se hace por igualdad de enum, nunca comparando
cadenas libres: cualquier variante de captura ("efectivo", "EFECTIVO",
"Tarjeta - Debito") se normaliza al registrar la venta o el abono.
"""
import unicodedata
from enum import Enum

from tiendapos.core.errors import ValidationError


class PaymentMethod(str, Enum):
    efectivo = "Efectivo"
    tarjeta_credito = "Tarjeta – Crédito"
    tarjeta_debito = "Tarjeta – Débito"
    transferencia = "Transferencia"
    mercadopago = "MercadoPago"
    credito = "Crédito"


CASH_METHOD = PaymentMethod.efectivo
CREDIT_METHOD = PaymentMethod.credito


def _fold(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    # "Tarjeta – Crédito", "tarjeta-credito" and "Tarjeta Credito" fold to the same key
    return "".join(ch for ch in stripped.lower() if ch.isalnum())


_ALIASES = {_fold(m.value): m for m in PaymentMethod}
_ALIASES.update({
    _fold("cash"): PaymentMethod.efectivo,
    _fold("tarjeta credito"): PaymentMethod.tarjeta_credito,
    _fold("tarjeta debito"): PaymentMethod.tarjeta_debito,
    _fold("mercado pago"): PaymentMethod.mercadopago,
})


def normalize_payment_method(raw) -> PaymentMethod:
    if isinstance(raw, PaymentMethod):
        return raw
    if raw is None or not str(raw).strip():
        raise ValidationError("La forma de pago es requerida")
    method = _ALIASES.get(_fold(str(raw)))
    if method is None:
        raise ValidationError(f"Forma de pago no reconocida: {raw}")
    return method
