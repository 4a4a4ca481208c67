"""
Entradas y ajustes de inventario, kardex por producto y reportes de existencias.

Toda modificación de stock fuera de una venta pasa por aquí y deja un
InventoryMovement con la existencia anterior y la nueva.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, TypedDict

from sqlalchemy import or_
from sqlalchemy.orm import Session

from tiendapos.core.database import commit_or_rollback
from tiendapos.core.errors import AuthorizationError, NotFoundError, ValidationError
from tiendapos.core.roles import Actor, Permission
from tiendapos.core.serialization_helpers import to_money
from tiendapos.core.time_utils import utcnow
from tiendapos.models.inventory_movement import INVENTORY_ADJUSTMENT, INVENTORY_ENTRY, InventoryMovement
from tiendapos.models.product import Product
from tiendapos.models.sale import SALE_CANCELLED, Sale, SaleItem


logger = logging.getLogger(__name__)


class KardexEntry(TypedDict):
    """Un renglón del kardex con el saldo después del movimiento."""
    date: datetime
    type: str
    reference: Optional[str]
    quantity_in: int
    quantity_out: int
    balance_after: int
    note: Optional[str]


class KardexReport(TypedDict):
    product: Product
    initial_balance: int
    current_stock: int
    movements: List[KardexEntry]


def _check_can_manage(actor: Actor) -> None:
    if not actor.can(Permission.can_manage_products):
        raise AuthorizationError("No autorizado para modificar inventario")


def _lock_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).with_for_update().first()
    if not product:
        raise NotFoundError("Producto no encontrado")
    return product


def _apply_prices(product: Product, cost=None, price_retail=None, price_wholesale=None) -> None:
    prices = {
        attr: to_money(value)
        for attr, value in (('cost', cost), ('price_retail', price_retail), ('price_wholesale', price_wholesale))
        if value is not None
    }
    if any(amount < 0 for amount in prices.values()):
        raise ValidationError("Precio y costo no pueden ser negativos")
    for attr, amount in prices.items():
        setattr(product, attr, amount)


def _record(
    db: Session,
    actor: Actor,
    product: Product,
    movement_type: str,
    quantity: int,
    previous_stock: int,
    reason: str,
) -> InventoryMovement:
    movement = InventoryMovement(
        product_id=product.id,
        movement_type=movement_type,
        quantity=quantity,
        previous_stock=previous_stock,
        new_stock=product.stock,
        cost=to_money(product.cost),
        price_retail=to_money(product.price_retail),
        price_wholesale=product.price_wholesale,
        reason=reason,
        user_id=actor.id,
        username=actor.username,
        created_at=utcnow(),
    )
    db.add(movement)
    commit_or_rollback(db, f"registering inventory {movement_type}")
    db.refresh(movement)
    logger.info(
        "Inventory %s for product %s: %s -> %s by %s",
        movement_type, product.id, previous_stock, product.stock, actor.username,
    )
    return movement


def add_stock(
    db: Session,
    actor: Actor,
    product_id: int,
    quantity: int,
    cost=None,
    price_retail=None,
    price_wholesale=None,
    reason: Optional[str] = None,
) -> InventoryMovement:
    """
    Entrada de mercancía: suma `quantity` a la existencia y opcionalmente
    actualiza los precios del producto.
    """
    _check_can_manage(actor)
    if not product_id or quantity is None or int(quantity) <= 0:
        raise ValidationError("Producto y cantidad (> 0) son obligatorios para agregar inventario")

    product = _lock_product(db, product_id)
    previous_stock = int(product.stock or 0)
    _apply_prices(product, cost, price_retail, price_wholesale)
    product.stock = previous_stock + int(quantity)

    return _record(db, actor, product, INVENTORY_ENTRY, int(quantity), previous_stock,
                   reason or "Entrada de inventario")


def adjust_stock(
    db: Session,
    actor: Actor,
    product_id: int,
    delta: Optional[int] = None,
    new_stock: Optional[int] = None,
    cost=None,
    price_retail=None,
    price_wholesale=None,
    reason: Optional[str] = None,
) -> InventoryMovement:
    """
    Ajuste manual por diferencia (`delta`, con signo) o por conteo (`new_stock`).
    `delta` tiene prioridad; la existencia nunca queda negativa.
    """
    _check_can_manage(actor)
    if not product_id:
        raise ValidationError("El producto es obligatorio")

    product = _lock_product(db, product_id)
    previous_stock = int(product.stock or 0)

    if delta:
        movement_delta = int(delta)
        target = previous_stock + movement_delta
    elif new_stock is not None:
        target = int(new_stock)
        movement_delta = target - previous_stock
        if movement_delta == 0:
            raise ValidationError("La nueva cantidad es igual a la existencia actual, no hay nada que ajustar")
    else:
        raise ValidationError("Debes indicar un ajuste (+/-) o una nueva cantidad distinta a la actual")

    if target < 0:
        raise ValidationError("El ajuste dejaría el inventario en negativo")

    _apply_prices(product, cost, price_retail, price_wholesale)
    product.stock = target

    return _record(db, actor, product, INVENTORY_ADJUSTMENT, movement_delta, previous_stock,
                   reason or "Ajuste de inventario")


def _find_product(db: Session, product_id: Optional[int], sku_or_barcode: Optional[str]) -> Product:
    if product_id is None and not sku_or_barcode:
        raise ValidationError("Debes enviar product_id o sku_or_barcode")
    query = db.query(Product)
    if product_id is not None:
        product = query.filter(Product.id == product_id).first()
    else:
        code = sku_or_barcode.strip()
        product = query.filter(or_(Product.sku == code, Product.barcode == code)).first()
    if not product:
        raise NotFoundError("Producto no encontrado")
    return product


def kardex(
    db: Session,
    product_id: Optional[int] = None,
    sku_or_barcode: Optional[str] = None,
) -> KardexReport:
    """
    Historial de existencias de un producto: ventas (salidas), cancelaciones
    (regresan stock), entradas y ajustes. El saldo inicial se reconstruye hacia
    atrás desde la existencia actual.
    """
    product = _find_product(db, product_id, sku_or_barcode)

    entries: List[Dict[str, Any]] = []

    sold = (
        db.query(SaleItem, Sale)
        .join(Sale, SaleItem.sale_id == Sale.id)
        .filter(SaleItem.product_id == product.id)
        .all()
    )
    for item, sale in sold:
        qty = int(item.quantity or 0)
        if qty <= 0:
            continue
        entries.append({'date': sale.created_at, 'type': 'VENTA', 'reference': sale.folio,
                        'quantity_in': 0, 'quantity_out': qty, 'note': item.variant_text})
        if sale.status == SALE_CANCELLED and sale.cancelled_at is not None:
            entries.append({'date': sale.cancelled_at, 'type': 'CANCELACIÓN', 'reference': sale.folio,
                            'quantity_in': qty, 'quantity_out': 0, 'note': sale.cancel_reason})

    movements = db.query(InventoryMovement).filter(InventoryMovement.product_id == product.id).all()
    for m in movements:
        qty = int(m.quantity)
        if m.movement_type == INVENTORY_ENTRY:
            kind = 'ENTRADA'
        else:
            kind = 'AJUSTE +' if qty > 0 else 'AJUSTE -'
        entries.append({'date': m.created_at, 'type': kind, 'reference': str(m.id),
                        'quantity_in': max(qty, 0), 'quantity_out': max(-qty, 0),
                        'note': m.reason or m.username})

    entries.sort(key=lambda e: e['date'])

    current_stock = int(product.stock or 0)
    net = sum(e['quantity_in'] - e['quantity_out'] for e in entries)
    initial_balance = current_stock - net

    running = initial_balance
    result: List[KardexEntry] = []
    for e in entries:
        running += e['quantity_in'] - e['quantity_out']
        result.append(KardexEntry(balance_after=running, **e))

    return KardexReport(
        product=product,
        initial_balance=initial_balance,
        current_stock=current_stock,
        movements=result,
    )


def low_stock_products(db: Session) -> List[Product]:
    """Productos con stock mínimo configurado (> 0) y existencia <= mínimo."""
    return (
        db.query(Product)
        .filter(Product.min_stock > 0, Product.stock <= Product.min_stock)
        .order_by(Product.category.asc(), Product.name.asc())
        .all()
    )


def inventory_report(db: Session) -> List[Dict[str, Any]]:
    """Valuación por producto: a costo, a precio de venta y utilidad bruta potencial."""
    rows = []
    for p in db.query(Product).order_by(Product.category.asc(), Product.name.asc()).all():
        cost = to_money(p.cost)
        price_retail = to_money(p.price_retail)
        stock = int(p.stock or 0)
        rows.append({
            'id': p.id,
            'name': p.name,
            'sku': p.sku,
            'category': p.category,
            'cost': cost,
            'price_retail': price_retail,
            'stock': stock,
            'min_stock': int(p.min_stock or 0),
            'value_cost': cost * stock,
            'value_retail': price_retail * stock,
            'gross_profit': (price_retail - cost) * stock,
        })
    return rows


def list_movements(db: Session, product_id: Optional[int] = None, limit: int = 200) -> List[InventoryMovement]:
    query = db.query(InventoryMovement)
    if product_id is not None:
        query = query.filter(InventoryMovement.product_id == product_id)
    return query.order_by(InventoryMovement.created_at.desc(), InventoryMovement.id.desc()).limit(limit).all()
