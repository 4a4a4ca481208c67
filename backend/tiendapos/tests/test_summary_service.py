from datetime import date, datetime, timedelta
from decimal import Decimal

from tiendapos.core.time_utils import EPOCH
from tiendapos.services import cash_cut_service, summary_service


CUT_AT = datetime(2024, 1, 1, 20, 0)


def test_live_summary_without_cuts_starts_at_epoch(db, sale_factory):
    sale_factory(100, created_at=datetime(2024, 1, 1, 10, 0))
    sale_factory(50, method="Transferencia", created_at=datetime(2024, 1, 1, 11, 0))

    summary = summary_service.live_summary(db, now=CUT_AT)

    assert summary['range_start'] == EPOCH
    assert summary['range_end'] == CUT_AT
    assert summary['last_cut'] is None
    assert summary['sales_count'] == 2
    assert summary['cash_from_sales'] == Decimal("100.00")
    assert summary['theoretical_cash'] == Decimal("100.00")


def test_live_summary_is_idempotent_for_fixed_now(db, admin, sale_factory):
    sale_factory(80, created_at=datetime(2024, 1, 1, 9, 0))
    cut = cash_cut_service.close_shift(db, admin.to_actor(), closing_amount=Decimal("80"), now=CUT_AT)
    sale_factory(30, created_at=datetime(2024, 1, 2, 9, 0))
    now = datetime(2024, 1, 2, 12, 0)

    first = summary_service.live_summary(db, now=now)
    second = summary_service.live_summary(db, now=now)

    assert first == second
    assert first['last_cut'].id == cut.id
    assert first['range_start'] == CUT_AT
    assert first['sales_count'] == 1
    assert first['cash_from_sales'] == Decimal("30.00")


def test_live_summary_with_clock_behind_last_cut_is_empty(db, admin, sale_factory):
    sale_factory(80, created_at=datetime(2024, 1, 1, 9, 0))
    cash_cut_service.close_shift(db, admin.to_actor(), closing_amount=Decimal("80"), now=CUT_AT)

    summary = summary_service.live_summary(db, now=CUT_AT - timedelta(hours=1))

    assert summary['range_start'] == CUT_AT
    assert summary['range_end'] == CUT_AT + timedelta(microseconds=1)
    assert summary['sales_count'] == 0
    assert summary['theoretical_cash'] == Decimal("0.00")

    # Mismo instante que el corte: también rango vacío, sin error
    same = summary_service.live_summary(db, now=CUT_AT)
    assert same['range_end'] == CUT_AT + timedelta(microseconds=1)
    assert same['sales_count'] == 0


def test_daily_summary_for_explicit_day_includes_both_midnight_edges(db, sale_factory, product):
    day = date(2024, 3, 15)
    sale_factory(10, created_at=datetime(2024, 3, 14, 23, 59, 59, 999999))
    sale_factory(100, cost="40", created_at=datetime(2024, 3, 15, 0, 0))
    sale_factory(200, cost="50", created_at=datetime(2024, 3, 15, 23, 59, 59, 999999))
    sale_factory(300, created_at=datetime(2024, 3, 15, 12, 0), cancelled=True)
    sale_factory(20, created_at=datetime(2024, 3, 16, 0, 0))

    report = summary_service.daily_summary(db, day=day)

    assert report['date'] == day
    assert report['sales_count'] == 2
    assert report['total_sales'] == Decimal("300.00")
    assert report['total_cost'] == Decimal("90.00")
    assert report['profit'] == Decimal("210.00")
    # Producto de prueba: 10 piezas a costo 40 / precio 100
    assert report['inventory_cost_value'] == Decimal("400.00")
    assert report['inventory_retail_value'] == Decimal("1000.00")


def test_daily_summary_for_day_without_sales(db):
    report = summary_service.daily_summary(db, day=date(2024, 3, 15))

    assert report['sales_count'] == 0
    assert report['total_sales'] == Decimal("0.00")
