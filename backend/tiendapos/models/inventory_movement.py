from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String

from tiendapos.models.base import Base


INVENTORY_ENTRY = "entrada"
INVENTORY_ADJUSTMENT = "ajuste"


class InventoryMovement(Base):
    __tablename__ = "inventory_movements"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    # Movement type: "entrada" or "ajuste"
    movement_type = Column(String(20), nullable=False)

    # Quantity change (positive for entrada, signed for ajuste)
    quantity = Column(Integer, nullable=False)
    previous_stock = Column(Integer, nullable=False)
    new_stock = Column(Integer, nullable=False)

    # Prices at time of movement
    cost = Column(Numeric(10, 2), nullable=False, default=0)
    price_retail = Column(Numeric(10, 2), nullable=False, default=0)
    price_wholesale = Column(Numeric(10, 2), nullable=True)

    reason = Column(String(500), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    username = Column(String(100), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
