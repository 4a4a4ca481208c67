"""
Servicio centralizado para generación de folios.
Cada serie tiene su propio contador monotónico en FolioCounter; el formato
PREFIX-000001 es solo presentación sobre ese contador.
"""
from sqlalchemy.orm import Session

from tiendapos.core.errors import ValidationError
from tiendapos.models.folio_counter import FolioCounter


# Mapeo de tipo a prefijo
PREFIX_MAP = {
    'VENTA': 'FA',
    'CORTE': 'CC',
}


def format_folio(prefix: str, seq: int) -> str:
    """
    Formato de presentación: {PREFIX}-{SEQ:06d}.
    """
    return f"{prefix}-{str(seq).zfill(6)}"


def lock_counter(db: Session, tipo: str) -> FolioCounter:
    """
    Obtiene el contador de una serie con SELECT ... FOR UPDATE, creándolo si no existe.

    Mientras la transacción del caller siga abierta, cualquier otra transacción
    que pida el mismo contador espera. El corte de caja usa esto como candado.
    NO hace commit.
    """
    counter = db.query(FolioCounter).filter(
        FolioCounter.tipo == tipo
    ).with_for_update().first()

    if not counter:
        counter = FolioCounter(tipo=tipo, next_seq=1)
        db.add(counter)
        db.flush()

    return counter


def get_next_folio_seq(db: Session, tipo: str) -> int:
    """
    Obtiene el siguiente número de secuencia para un tipo de folio.
    Crea el contador si no existe.

    NO hace commit - el caller debe hacer commit después de asignar el folio,
    así un rollback devuelve el número a la serie.

    Returns:
        Número de secuencia actual (antes de incrementar)
    """
    counter = lock_counter(db, tipo)
    current_seq = counter.next_seq
    counter.next_seq += 1
    return current_seq


def generate_folio(db: Session, tipo: str) -> str:
    """
    Genera el siguiente folio de la serie.

    Args:
        db: Sesión de base de datos
        tipo: Tipo de folio ('VENTA', 'CORTE')

    Returns:
        Folio generado (ej: 'FA-000001', 'CC-000001')
    """
    if tipo not in PREFIX_MAP:
        raise ValidationError(f"Tipo de folio inválido: {tipo}. Debe ser 'VENTA' o 'CORTE'")

    seq = get_next_folio_seq(db, tipo)
    return format_folio(PREFIX_MAP[tipo], seq)
