from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from tiendapos.core.errors import (
    AuthorizationError,
    EmptyRangeError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from tiendapos.core.time_utils import EPOCH
from tiendapos.models import CashCut, CashMovement
from tiendapos.services import cash_cut_service
from tiendapos.services.reconciliation_service import reconcile


DAY1_CLOSE = datetime(2024, 1, 1, 20, 0)
DAY2_CLOSE = datetime(2024, 1, 2, 20, 0)


def test_first_cut_starts_at_epoch(db, admin, sale_factory):
    sale_factory(120, created_at=datetime(2024, 1, 1, 10, 0))

    cut = cash_cut_service.close_shift(
        db, admin.to_actor(), closing_amount=Decimal("620"),
        opening_amount=Decimal("500"), notes="turno matutino", now=DAY1_CLOSE,
    )

    assert cut.folio == "CC-000001"
    assert cut.range_start == EPOCH
    assert cut.range_end == DAY1_CLOSE
    assert cut.expected_cash == Decimal("620.00")
    assert cut.difference == Decimal("0.00")
    assert cut.notes == "turno matutino"
    assert cut.username == "admin"
    assert cut.totals_by_method == {"Efectivo": 120.0}


def test_consecutive_cuts_are_contiguous(db, admin, sale_factory):
    actor = admin.to_actor()
    sale_factory(100, created_at=datetime(2024, 1, 1, 10, 0))
    first = cash_cut_service.close_shift(db, actor, closing_amount=100, now=DAY1_CLOSE)

    sale_factory(40, created_at=datetime(2024, 1, 2, 10, 0))
    second = cash_cut_service.close_shift(db, actor, closing_amount=35, now=DAY2_CLOSE)

    assert second.range_start == first.range_end
    assert second.folio == "CC-000002"
    assert second.sales_count == 1
    assert second.total_sales == Decimal("40.00")
    assert second.difference == Decimal("-5.00")


def test_sale_on_boundary_belongs_to_earlier_cut(db, admin, sale_factory):
    actor = admin.to_actor()
    sale_factory(70, created_at=DAY1_CLOSE)
    first = cash_cut_service.close_shift(db, actor, closing_amount=70, now=DAY1_CLOSE)
    assert first.sales_count == 1

    with pytest.raises(EmptyRangeError):
        cash_cut_service.close_shift(db, actor, closing_amount=0, now=DAY2_CLOSE)


def test_empty_range_persists_nothing_and_keeps_folio(db, admin, sale_factory):
    actor = admin.to_actor()
    with pytest.raises(EmptyRangeError):
        cash_cut_service.close_shift(db, actor, closing_amount=0, now=DAY1_CLOSE)
    assert db.query(CashCut).count() == 0

    sale_factory(10, created_at=datetime(2024, 1, 1, 10, 0))
    cut = cash_cut_service.close_shift(db, actor, closing_amount=10, now=DAY1_CLOSE)
    assert cut.folio == "CC-000001"


def test_only_cancelled_sales_is_empty(db, admin, sale_factory):
    sale_factory(10, created_at=datetime(2024, 1, 1, 10, 0), cancelled=True)
    with pytest.raises(EmptyRangeError):
        cash_cut_service.close_shift(db, admin.to_actor(), closing_amount=0, now=DAY1_CLOSE)


def test_cashier_cannot_close_shift(db, cashier, sale_factory):
    sale_factory(10, created_at=datetime(2024, 1, 1, 10, 0))
    with pytest.raises(AuthorizationError):
        cash_cut_service.close_shift(db, cashier.to_actor(), closing_amount=10, now=DAY1_CLOSE)
    assert db.query(CashCut).count() == 0


def test_closing_amount_is_required(db, admin):
    with pytest.raises(ValidationError):
        cash_cut_service.close_shift(db, admin.to_actor(), closing_amount=None, now=DAY1_CLOSE)


def test_opening_defaults_to_registered_openings(db, admin, sale_factory):
    sale_factory(50, created_at=datetime(2024, 1, 1, 10, 0))
    db.add(CashMovement(type="opening", direction="in", amount=Decimal("300"),
                        created_at=datetime(2024, 1, 1, 8, 0)))
    db.commit()

    cut = cash_cut_service.close_shift(db, admin.to_actor(), closing_amount=350, now=DAY1_CLOSE)

    assert cut.opening_amount == Decimal("300.00")
    assert cut.expected_cash == Decimal("350.00")


def test_aware_now_is_normalized_to_utc(db, admin, sale_factory):
    sale_factory(10, created_at=datetime(2024, 1, 1, 10, 0))
    local_close = datetime(2024, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=-6)))

    cut = cash_cut_service.close_shift(db, admin.to_actor(), closing_amount=10, now=local_close)

    assert cut.range_end == DAY1_CLOSE


def test_preview_does_not_persist(db, admin, sale_factory):
    sale_factory(25, created_at=datetime(2024, 1, 1, 10, 0))

    preview = cash_cut_service.preview_shift(db, admin.to_actor(), closing_amount=30, now=DAY1_CLOSE)

    assert preview["expected_cash"] == Decimal("25.00")
    assert preview["difference"] == Decimal("5.00")
    assert db.query(CashCut).count() == 0


def test_second_cut_from_same_anchor_is_rejected(db, admin, sale_factory):
    actor = admin.to_actor()
    sale_factory(10, created_at=datetime(2024, 1, 1, 10, 0))
    computation = reconcile(db, EPOCH, DAY1_CLOSE, 0, 10)
    cash_cut_service.persist_cut(db, computation, actor)
    db.commit()

    with pytest.raises(PersistenceError):
        cash_cut_service.persist_cut(db, computation, actor)
    assert db.query(CashCut).count() == 1


def test_list_and_get_cuts(db, admin, sale_factory):
    actor = admin.to_actor()
    sale_factory(10, created_at=datetime(2024, 1, 1, 10, 0))
    first = cash_cut_service.close_shift(db, actor, closing_amount=10, now=DAY1_CLOSE)
    sale_factory(20, created_at=datetime(2024, 1, 2, 10, 0))
    second = cash_cut_service.close_shift(db, actor, closing_amount=20, now=DAY2_CLOSE)

    assert [c.id for c in cash_cut_service.list_cuts(db)] == [second.id, first.id]
    assert cash_cut_service.get_cut(db, first.id).folio == "CC-000001"
    with pytest.raises(NotFoundError):
        cash_cut_service.get_cut(db, 9999)
