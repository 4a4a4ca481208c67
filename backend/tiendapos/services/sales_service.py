"""
Servicio de negocio para ventas.
Crea ventas de mostrador (con folio FA-xxxxxx) y las cancela; una venta nunca se borra.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from tiendapos.core.database import commit_or_rollback
from tiendapos.core.errors import AuthorizationError, NotFoundError, ValidationError
from tiendapos.core.folio_service import generate_folio
from tiendapos.core.payment_methods import CREDIT_METHOD, normalize_payment_method
from tiendapos.core.roles import Actor, Permission
from tiendapos.core.serialization_helpers import money_equal, to_money
from tiendapos.core.time_utils import utcnow
from tiendapos.models.customer import Customer
from tiendapos.models.product import Product
from tiendapos.models.sale import SALE_CANCELLED, SALE_COMPLETED, Sale, SaleItem, SalePayment


logger = logging.getLogger(__name__)


def calculate_sale_totals(
    lines: List[Dict[str, Any]],
    discount_amount: Decimal = Decimal("0"),
) -> Dict[str, Decimal]:
    """
    Calcula los totales de una venta.

    Args:
        lines: Lista de renglones con 'subtotal'
        discount_amount: Descuento general aplicado

    Returns:
        Diccionario con subtotal, discount, total
    """
    subtotal = sum((to_money(line['subtotal']) for line in lines), Decimal("0.00"))
    discount = to_money(discount_amount)
    if discount < 0:
        raise ValidationError("El descuento no puede ser negativo")
    if discount > subtotal:
        raise ValidationError("El descuento no puede exceder el subtotal")

    return {
        'subtotal': subtotal,
        'discount': discount,
        'total': subtotal - discount,
    }


def validate_stock(db: Session, items: List[Dict[str, Any]]) -> Dict[int, Product]:
    """
    Valida stock y retorna mapa de productos.

    Args:
        db: Sesión de base de datos
        items: Lista de items con 'product_id' (opcional) y 'quantity'

    Returns:
        Mapa de product_id -> Product

    Raises:
        NotFoundError: Si algún producto no existe o está inactivo
        ValidationError: Si no hay stock suficiente
    """
    requested: Dict[int, int] = {}
    for item in items:
        product_id = item.get('product_id')
        if product_id is not None:
            requested[product_id] = requested.get(product_id, 0) + int(item.get('quantity') or 0)

    product_map: Dict[int, Product] = {}
    for product_id, quantity in requested.items():
        p = db.query(Product).filter(
            Product.id == product_id,
            Product.is_active.is_(True),
        ).first()

        if not p:
            raise NotFoundError(f"Producto inválido: {product_id}")

        if p.stock is not None and p.stock < quantity:
            raise ValidationError(f"Stock insuficiente para {p.name}")

        product_map[product_id] = p

    return product_map


def _build_lines(items: List[Dict[str, Any]], product_map: Dict[int, Product]) -> List[Dict[str, Any]]:
    lines = []
    for item in items:
        quantity = int(item.get('quantity') or 0)
        if quantity < 1:
            raise ValidationError("La cantidad debe ser mayor a 0")

        product = product_map.get(item.get('product_id'))
        if product is not None:
            # Precio y costo se toman del catálogo salvo precio explícito del cajero
            name = product.name
            unit_price = item.get('unit_price')
            unit_price = to_money(product.price_retail if unit_price is None else unit_price)
            unit_cost = to_money(product.cost)
        else:
            name = (item.get('name') or '').strip()
            if not name or item.get('unit_price') is None:
                raise ValidationError("Los artículos sin producto requieren nombre y precio")
            unit_price = to_money(item['unit_price'])
            unit_cost = to_money(item.get('unit_cost'))

        if unit_price < 0 or unit_cost < 0:
            raise ValidationError("Precio y costo no pueden ser negativos")

        lines.append({
            'product': product,
            'name': name,
            'variant_text': item.get('variant_text'),
            'quantity': quantity,
            'unit_price': unit_price,
            'unit_cost': unit_cost,
            'subtotal': to_money(unit_price * quantity),
        })
    return lines


def _normalize_payments(payments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    normalized = []
    for p in payments:
        amount = to_money(p.get('amount'))
        if amount <= 0:
            raise ValidationError("Cada forma de pago debe tener un monto mayor a 0")
        normalized.append({'method': normalize_payment_method(p.get('method')), 'amount': amount})
    return normalized


def create_sale(
    db: Session,
    actor: Actor,
    items: List[Dict[str, Any]],
    payments: List[Dict[str, Any]],
    discount: Decimal = Decimal("0"),
    customer_id: Optional[int] = None,
    customer_name: Optional[str] = None,
) -> Sale:
    """
    Registra una venta completada.

    El inventario se descuenta por cada renglón con producto y los pagos con
    "Crédito" se cargan al saldo del cliente, todo en un solo commit.
    Si el descuento deja el total en 0, `payments` puede ir vacío.

    Raises:
        AuthorizationError, ValidationError, NotFoundError, PersistenceError
    """
    if not actor.can(Permission.can_sell):
        raise AuthorizationError("No autorizado para vender")
    if not items:
        raise ValidationError("La venta debe tener al menos un producto")

    product_map = validate_stock(db, items)
    lines = _build_lines(items, product_map)
    totals = calculate_sale_totals(lines, discount)
    # Una venta con descuento total (total 0) no lleva formas de pago
    if not payments and totals['total'] > 0:
        raise ValidationError("Debe especificarse al menos una forma de pago")
    normalized_payments = _normalize_payments(payments or [])

    paid = sum((p['amount'] for p in normalized_payments), Decimal("0.00"))
    if not money_equal(paid, totals['total']):
        raise ValidationError("La suma de las formas de pago no coincide con el total")

    customer = None
    if customer_id is not None:
        customer = db.query(Customer).filter(Customer.id == customer_id).first()
        if not customer:
            raise NotFoundError("Cliente no encontrado")

    credit_amount = sum(
        (p['amount'] for p in normalized_payments if p['method'] == CREDIT_METHOD),
        Decimal("0.00"),
    )
    if credit_amount > 0 and customer is None:
        raise ValidationError("Las ventas a crédito requieren un cliente")

    sale = Sale(
        folio=generate_folio(db, 'VENTA'),
        subtotal=totals['subtotal'],
        discount=totals['discount'],
        total=totals['total'],
        customer_id=customer.id if customer else None,
        customer_name=customer_name or (customer.name if customer else None),
        user_id=actor.id,
        cashier=actor.username,
        status=SALE_COMPLETED,
        created_at=utcnow(),
    )

    for line in lines:
        product = line['product']
        sale.items.append(SaleItem(
            product_id=product.id if product else None,
            name=line['name'],
            variant_text=line['variant_text'],
            quantity=line['quantity'],
            unit_price=line['unit_price'],
            unit_cost=line['unit_cost'],
            subtotal=line['subtotal'],
        ))
        # Decrementar stock
        if product is not None and product.stock is not None:
            product.stock = int(product.stock) - line['quantity']

    for p in normalized_payments:
        sale.payments.append(SalePayment(method=p['method'].value, amount=p['amount']))

    if credit_amount > 0:
        customer.current_balance = to_money(customer.current_balance) + credit_amount

    db.add(sale)
    commit_or_rollback(db, "creating sale")
    db.refresh(sale)
    logger.info("Sale %s created by %s: total=%s", sale.folio, actor.username, sale.total)
    return sale


def cancel_sale(db: Session, actor: Actor, sale_id: int, reason: Optional[str] = None) -> Sale:
    """
    Cancela una venta: regresa el stock y marca status/cancelled_at/cancel_reason.
    """
    if not actor.can(Permission.can_cancel_sales):
        raise AuthorizationError("No autorizado para cancelar ventas")

    sale = get_sale(db, sale_id)
    if sale.status == SALE_CANCELLED:
        raise ValidationError("La venta ya está cancelada")

    # Regresar stock
    for item in sale.items:
        if not item.product_id:
            continue
        product = db.query(Product).filter(Product.id == item.product_id).first()
        if product is None:
            continue
        product.stock = int(product.stock or 0) + int(item.quantity or 0)

    sale.status = SALE_CANCELLED
    sale.cancelled_at = utcnow()
    sale.cancel_reason = reason or None

    commit_or_rollback(db, "cancelling sale")
    db.refresh(sale)
    logger.info("Sale %s cancelled by %s", sale.folio, actor.username)
    return sale


def get_sale(db: Session, sale_id: int) -> Sale:
    sale = (
        db.query(Sale)
        .options(selectinload(Sale.items), selectinload(Sale.payments))
        .filter(Sale.id == sale_id)
        .first()
    )
    if not sale:
        raise NotFoundError("Venta no encontrada")
    return sale


def list_sales(db: Session, limit: int = 100, status: Optional[str] = None) -> List[Sale]:
    query = db.query(Sale).options(selectinload(Sale.items), selectinload(Sale.payments))
    if status:
        query = query.filter(Sale.status == status)
    return query.order_by(Sale.created_at.desc(), Sale.id.desc()).limit(limit).all()
