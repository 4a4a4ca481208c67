from .base import Base
from .user import User
from .product import Product
from .customer import Customer, CustomerPayment
from .sale import Sale, SaleItem, SalePayment
from .cash_movement import CashMovement
from .cash_cut import CashCut
from .folio_counter import FolioCounter
from .inventory_movement import InventoryMovement

__all__ = [
    "Base",
    "User",
    "Product",
    "Customer",
    "CustomerPayment",
    "Sale",
    "SaleItem",
    "SalePayment",
    "CashMovement",
    "CashCut",
    "FolioCounter",
    "InventoryMovement",
]
