"""Catalog service - product listing, detail and admin maintenance."""
import logging
import math
from typing import Any, Dict, Optional

from flask import current_app
from sqlalchemy import or_

from storefront.models import Product
from storefront.exceptions import NotFoundError, ValidationError
from storefront.services.cache_service import get_cache, invalidate_catalog

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = ('name', 'description', 'price', 'image', 'category', 'stock', 'active')


def _cache():
    try:
        return get_cache()
    except RuntimeError:
        return None


def list_products(session, category: Optional[str] = None, search: Optional[str] = None,
                  page: int = 1, limit: Optional[int] = None) -> Dict[str, Any]:
    """
    Paginated active products, newest first, with the category list.

    Listings are cached per query; settlement and admin edits invalidate them.
    """
    page = max(page, 1)
    limit = max(min(limit or current_app.config.get('PRODUCTS_PAGE_SIZE', 50), 100), 1)
    category = (category or '').strip() or None
    search = (search or '').strip() or None

    def load():
        query = session.query(Product).filter(Product.active.is_(True))
        if category:
            query = query.filter(Product.category == category)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))

        total = query.count()
        products = (query
                    .order_by(Product.created_at.desc(), Product.id.desc())
                    .offset((page - 1) * limit)
                    .limit(limit)
                    .all())

        categories = [
            row[0] for row in
            session.query(Product.category)
            .filter(Product.active.is_(True))
            .distinct()
            .order_by(Product.category)
            .all()
        ]
        return {
            'products': [p.to_dict() for p in products],
            'categories': categories,
            'pagination': {
                'page': page,
                'limit': limit,
                'total': total,
                'pages': math.ceil(total / limit) if total else 0,
            },
        }

    cache = _cache()
    if cache is None:
        return load()
    key = f"list:{category or '*'}:{search or '*'}:{page}:{limit}"
    return cache.memoize('products', key, load, ttl=current_app.config.get('CACHE_PRODUCTS_TTL', 60))


def get_product(session, product_id: int, include_inactive: bool = False) -> Product:
    product = session.get(Product, product_id)
    if not product or (not product.active and not include_inactive):
        raise NotFoundError('Product not found')
    return product


def create_product(session, data: Dict[str, Any]) -> Product:
    product = Product(
        name=data['name'],
        description=data.get('description') or '',
        price=data['price'],
        image=data.get('image') or '',
        category=data['category'],
        stock=data.get('stock') or 0,
        active=data.get('active', True),
    )
    session.add(product)
    session.commit()
    invalidate_catalog()
    logger.info(f"[CATALOG] Created product {product.id} '{product.name}'")
    return product


def update_product(session, product_id: int, data: Dict[str, Any]) -> Product:
    """Partial update. Only keys present in data are changed."""
    product = get_product(session, product_id, include_inactive=True)
    for field in PRODUCT_FIELDS:
        if field in data and data[field] is not None:
            setattr(product, field, data[field])

    if product.stock < 0 or product.price < 0:
        session.rollback()
        raise ValidationError('Price and stock cannot be negative')

    session.commit()
    invalidate_catalog()
    return product


def deactivate_product(session, product_id: int) -> Product:
    """
    Soft delete. Carts drop the product on their next read and past orders
    keep their snapshot.
    """
    product = get_product(session, product_id, include_inactive=True)
    product.active = False
    session.commit()
    invalidate_catalog()
    logger.info(f"[CATALOG] Deactivated product {product_id}")
    return product
