import logging
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tiendapos.core.database import commit_or_rollback
from tiendapos.core.errors import NotFoundError, ValidationError
from tiendapos.core.serialization_helpers import to_money
from tiendapos.models.product import Product


logger = logging.getLogger(__name__)


def create_product(db: Session, data: dict) -> Product:
    if not (data.get('name') or '').strip():
        raise ValidationError("El nombre del producto es requerido")
    if not (data.get('sku') or '').strip():
        raise ValidationError("El SKU es requerido")
    if int(data.get('stock') or 0) < 0:
        raise ValidationError("El stock no puede ser negativo")

    product = Product(
        name=data['name'].strip(),
        sku=data['sku'].strip(),
        barcode=data.get('barcode'),
        category=data.get('category'),
        cost=to_money(data.get('cost')),
        price_retail=to_money(data.get('price_retail')),
        price_wholesale=to_money(data['price_wholesale']) if data.get('price_wholesale') is not None else None,
        stock=int(data.get('stock') or 0),
        min_stock=int(data.get('min_stock') or 0),
        is_active=data.get('is_active', True),
    )
    db.add(product)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ValidationError(f"El SKU {product.sku} ya existe")
    commit_or_rollback(db, "creating product")
    db.refresh(product)
    logger.info("Product %s (%s) created", product.id, product.sku)
    return product


def list_products(
    db: Session,
    q: Optional[str] = None,
    active: Optional[bool] = None,
    skip: int = 0,
    limit: int = 50,
) -> List[Product]:
    query = db.query(Product)
    if q:
        qn = q.strip().lower()
        if qn:
            query = query.filter(
                or_(
                    func.lower(Product.name).like(f"%{qn}%"),
                    func.lower(Product.sku).like(f"%{qn}%"),
                    func.lower(Product.barcode).like(f"%{qn}%"),
                    func.lower(Product.category).like(f"%{qn}%"),
                )
            )
    if active is not None:
        query = query.filter(Product.is_active == active)
    return query.order_by(Product.name.asc()).offset(skip).limit(limit).all()


def get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Producto no encontrado")
    return product


# La existencia solo cambia con ventas o con inventory_service (entradas/ajustes)
_UPDATABLE_FIELDS = ('name', 'sku', 'barcode', 'category', 'cost', 'price_retail',
                     'price_wholesale', 'min_stock', 'is_active')
_MONEY_FIELDS = ('cost', 'price_retail', 'price_wholesale')


def update_product(db: Session, product_id: int, data: dict) -> Product:
    """Actualiza los campos enviados (los ausentes o None no se tocan)."""
    product = get_product(db, product_id)
    changes = {k: v for k, v in data.items() if k in _UPDATABLE_FIELDS and v is not None}

    for field in ('name', 'sku'):
        if field in changes:
            changes[field] = changes[field].strip()
            if not changes[field]:
                raise ValidationError(f"El campo {field} no puede quedar vacío")
    for field in _MONEY_FIELDS:
        if field in changes:
            changes[field] = to_money(changes[field])
            if changes[field] < 0:
                raise ValidationError("Precio y costo no pueden ser negativos")
    if 'min_stock' in changes and int(changes['min_stock']) < 0:
        raise ValidationError("El stock mínimo no puede ser negativo")

    for field, value in changes.items():
        setattr(product, field, value)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ValidationError(f"El SKU {changes.get('sku')} ya existe")
    commit_or_rollback(db, "updating product")
    db.refresh(product)
    logger.info("Product %s updated: %s", product.id, sorted(changes))
    return product


def deactivate_product(db: Session, product_id: int) -> Product:
    """Baja lógica: el producto sale del catálogo pero las ventas lo siguen referenciando."""
    product = get_product(db, product_id)
    product.is_active = False
    commit_or_rollback(db, "deactivating product")
    db.refresh(product)
    logger.info("Product %s deactivated", product.id)
    return product
