from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from tiendapos.models.base import Base


SALE_COMPLETED = "completed"
SALE_CANCELLED = "cancelled"


class Sale(Base):
    __tablename__ = "sales"
    __table_args__ = (UniqueConstraint("folio", name="uq_sales_folio"),)

    id = Column(Integer, primary_key=True, index=True)
    folio = Column(String(20), nullable=False, index=True)
    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False, default=0)

    # Crédito
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    customer_name = Column(String(255), nullable=True)

    # Caja / control
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    cashier = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default=SALE_COMPLETED, index=True)
    cancel_reason = Column(String(500), nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    items = relationship(
        "SaleItem", back_populates="sale", cascade="all, delete-orphan", order_by="SaleItem.id"
    )
    payments = relationship(
        "SalePayment", back_populates="sale", cascade="all, delete-orphan", order_by="SalePayment.id"
    )


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    variant_text = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False, default=0)
    unit_cost = Column(Numeric(10, 2), nullable=False, default=0)  # Costo al momento de la venta
    subtotal = Column(Numeric(10, 2), nullable=False, default=0)

    sale = relationship("Sale", back_populates="items")


class SalePayment(Base):
    __tablename__ = "sale_payments"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    method = Column(String(50), nullable=False)  # PaymentMethod value
    amount = Column(Numeric(10, 2), nullable=False, default=0)

    sale = relationship("Sale", back_populates="payments")
