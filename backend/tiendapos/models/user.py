from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint

from tiendapos.core.roles import Actor, Permission
from tiendapos.models.base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("username", name="uq_users_username"),)

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default="cajero")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Permission flags (seeded from the role defaults)
    can_sell = Column(Boolean, nullable=False, default=True)
    can_manage_products = Column(Boolean, nullable=False, default=False)
    can_see_reports = Column(Boolean, nullable=False, default=False)
    can_do_cash_cuts = Column(Boolean, nullable=False, default=False)
    can_cancel_sales = Column(Boolean, nullable=False, default=False)
    can_manage_users = Column(Boolean, nullable=False, default=False)

    @property
    def permissions(self) -> frozenset:
        return frozenset(p for p in Permission if getattr(self, p.value))

    def to_actor(self) -> Actor:
        return Actor(id=self.id, username=self.username, permissions=self.permissions)
