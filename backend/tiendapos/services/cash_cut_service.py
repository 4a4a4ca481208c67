"""
Repositorio de cortes de caja.

Un corte es un registro de auditoría de solo-escritura: se crea una vez y no
existe operación de actualización ni borrado. Los rangos de cortes sucesivos
forman una partición del tiempo: cada corte inicia donde terminó el anterior
(o en EPOCH si no hay ninguno).
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from tiendapos.core.database import commit_or_rollback
from tiendapos.core.errors import AuthorizationError, NotFoundError, PersistenceError, PosError, ValidationError
from tiendapos.core.folio_service import generate_folio, lock_counter
from tiendapos.core.roles import Actor, Permission
from tiendapos.core.serialization_helpers import serialize_decimal
from tiendapos.core.time_utils import EPOCH, to_naive_utc, utcnow
from tiendapos.models.cash_cut import CashCut
from tiendapos.services.reconciliation_service import CutComputation, reconcile, sum_cash_movements


logger = logging.getLogger(__name__)

CUT_SERIES = 'CORTE'


def find_last_cut(db: Session) -> Optional[CashCut]:
    """Corte más reciente por range_end; ancla el inicio del siguiente."""
    return (
        db.query(CashCut)
        .order_by(CashCut.range_end.desc(), CashCut.id.desc())
        .first()
    )


def list_cuts(
    db: Session,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> List[CashCut]:
    """Historial de cortes filtrado por fecha de creación, más reciente primero."""
    query = db.query(CashCut)
    if date_from:
        query = query.filter(CashCut.created_at >= to_naive_utc(date_from))
    if date_to:
        query = query.filter(CashCut.created_at <= to_naive_utc(date_to))
    return query.order_by(CashCut.created_at.desc(), CashCut.id.desc()).all()


def get_cut(db: Session, cut_id: int) -> CashCut:
    cut = db.query(CashCut).filter(CashCut.id == cut_id).first()
    if not cut:
        raise NotFoundError("Corte de caja no encontrado")
    return cut


def persist_cut(
    db: Session,
    computation: CutComputation,
    actor: Actor,
    notes: Optional[str] = None,
) -> CashCut:
    """
    Asigna folio CC-xxxxxx e inserta el corte. NO hace commit.

    Una colisión de range_start (otro corte ya partió del mismo ancla) se
    reporta como PersistenceError.
    """
    cut = CashCut(
        folio=generate_folio(db, CUT_SERIES),
        range_start=computation['range_start'],
        range_end=computation['range_end'],
        opening_amount=computation['opening_amount'],
        closing_amount=computation['closing_amount'],
        expected_cash=computation['expected_cash'],
        difference=computation['difference'],
        total_sales=computation['total_sales'],
        total_cost=computation['total_cost'],
        profit=computation['profit'],
        sales_count=computation['sales_count'],
        cancelled_sales_count=computation['cancelled_sales_count'],
        cancelled_sales_total=computation['cancelled_sales_total'],
        totals_by_method={
            method: serialize_decimal(amount)
            for method, amount in computation['totals_by_method'].items()
        },
        notes=notes or "",
        user_id=actor.id,
        username=actor.username,
        created_at=utcnow(),
    )
    db.add(cut)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Cash cut anchored at %s already exists", computation['range_start'])
        raise PersistenceError("Ya existe un corte para este rango; vuelve a intentarlo") from exc
    return cut


def _resolve_range_and_opening(db: Session, now: Optional[datetime], opening_amount):
    last_cut = find_last_cut(db)
    range_start = last_cut.range_end if last_cut else EPOCH
    range_end = to_naive_utc(now) or utcnow()
    if opening_amount is None:
        # Sin monto explícito se toma el fondo registrado como apertura en el rango
        opening_amount = sum_cash_movements(db, range_start, range_end)['breakdown']['openings']
    return range_start, range_end, opening_amount


def _check_cut_permission(actor: Actor, closing_amount) -> None:
    if not actor.can(Permission.can_do_cash_cuts):
        raise AuthorizationError("No autorizado para corte de caja")
    if closing_amount is None:
        raise ValidationError("El efectivo contado (closing_amount) es requerido")


def preview_shift(
    db: Session,
    actor: Actor,
    closing_amount,
    opening_amount=None,
    now: Optional[datetime] = None,
) -> CutComputation:
    """Calcula el corte que se generaría ahora, sin persistir ni consumir folio."""
    _check_cut_permission(actor, closing_amount)
    range_start, range_end, opening = _resolve_range_and_opening(db, now, opening_amount)
    return reconcile(db, range_start, range_end, opening, closing_amount)


def close_shift(
    db: Session,
    actor: Actor,
    closing_amount,
    opening_amount=None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CashCut:
    """
    Genera y persiste el corte de caja desde el último corte (o EPOCH) hasta `now`.

    Leer el ancla, calcular e insertar ocurre dentro de una sola transacción que
    primero bloquea el contador de folios CORTE, así a lo más un corte está en
    curso a la vez.

    Args:
        db: Sesión de base de datos
        actor: Usuario que realiza el corte (requiere can_do_cash_cuts)
        closing_amount: Efectivo contado físicamente
        opening_amount: Fondo de apertura; por defecto la suma de aperturas del rango
        notes: Notas libres
        now: Fin del rango; por defecto la hora actual UTC

    Returns:
        CashCut persistido

    Raises:
        AuthorizationError, ValidationError, EmptyRangeError, PersistenceError
    """
    _check_cut_permission(actor, closing_amount)

    try:
        lock_counter(db, CUT_SERIES)
        range_start, range_end, opening = _resolve_range_and_opening(db, now, opening_amount)
        computation = reconcile(db, range_start, range_end, opening, closing_amount)
        cut = persist_cut(db, computation, actor, notes)
    except PosError as exc:
        db.rollback()
        logger.warning("Cash cut rejected: %s", exc.message)
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Persistence failure while computing cash cut")
        raise PersistenceError("Error al generar corte de caja") from exc

    commit_or_rollback(db, "creating cash cut")
    db.refresh(cut)
    logger.info(
        "Cash cut %s created by %s: range=(%s, %s] sales=%s expected=%s difference=%s",
        cut.folio, actor.username, cut.range_start, cut.range_end,
        cut.sales_count, cut.expected_cash, cut.difference,
    )
    return cut
