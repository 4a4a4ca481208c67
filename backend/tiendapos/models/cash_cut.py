from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint

from tiendapos.models.base import Base


class CashCut(Base):
    __tablename__ = "cash_cuts"
    __table_args__ = (
        UniqueConstraint("folio", name="uq_cash_cuts_folio"),
        # Dos cortes no pueden partir del mismo corte anterior
        UniqueConstraint("range_start", name="uq_cash_cuts_range_start"),
    )

    id = Column(Integer, primary_key=True, index=True)
    folio = Column(String(20), nullable=False, index=True)
    range_start = Column(DateTime, nullable=False)
    range_end = Column(DateTime, nullable=False, index=True)

    opening_amount = Column(Numeric(10, 2), nullable=False, default=0)
    closing_amount = Column(Numeric(10, 2), nullable=False, default=0)
    expected_cash = Column(Numeric(10, 2), nullable=False, default=0)
    difference = Column(Numeric(10, 2), nullable=False, default=0)

    total_sales = Column(Numeric(10, 2), nullable=False, default=0)
    total_cost = Column(Numeric(10, 2), nullable=False, default=0)
    profit = Column(Numeric(10, 2), nullable=False, default=0)

    sales_count = Column(Integer, nullable=False, default=0)
    cancelled_sales_count = Column(Integer, nullable=False, default=0)
    cancelled_sales_total = Column(Numeric(10, 2), nullable=False, default=0)

    totals_by_method = Column(JSON, nullable=False, default=dict)  # method -> amount
    notes = Column(Text, nullable=True)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    username = Column(String(100), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
