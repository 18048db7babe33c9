"""
Cart service.

Carts store quantities and a reference to an applied discount code. Totals
are never stored: every read re-prices the cart from live product rows.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from storefront.models import Cart, CartItem, Product
from storefront.exceptions import ValidationError, NotFoundError
from storefront.services.pricing_service import compute_quote, round_money
from storefront.utils.formatters import money
from storefront.utils.dates import utcnow, is_expired

logger = logging.getLogger(__name__)


def get_cart(session, user_id: int) -> Optional[Cart]:
    return session.query(Cart).filter_by(user_id=user_id).first()


def get_or_create_cart(session, user_id: int) -> Cart:
    """Return the user's cart, creating an empty one on first use."""
    cart = get_cart(session, user_id)
    if cart is None:
        cart = Cart(user_id=user_id)
        session.add(cart)
        session.flush()
    return cart


def price_cart(cart: Optional[Cart], now=None) -> Dict[str, Any]:
    """
    Price a cart against current product rows.

    Items whose product is gone or inactive land in `unavailable` and are left
    out of the totals. An applied discount that is no longer valid is ignored
    for pricing but stays attached to the cart.
    """
    now = now or utcnow()
    lines: List[Dict[str, Any]] = []
    unavailable: List[Dict[str, Any]] = []

    for item in (cart.items if cart else []):
        product = item.product
        if product is None or not product.active:
            unavailable.append({
                'product_id': item.product_id,
                'name': product.name if product else 'Unknown',
                'quantity': item.quantity,
            })
            continue
        lines.append({
            'product_id': product.id,
            'name': product.name,
            'image': product.image or '',
            'price': round_money(product.price),
            'quantity': item.quantity,
            'stock': product.stock,
        })

    discount = None
    percent = 0
    applied = cart.applied_discount if cart else None
    if applied is not None and not applied.is_used and not is_expired(applied.expires_at, now):
        discount = applied
        percent = applied.discount_percent

    quote = compute_quote(lines, percent)
    return {
        'lines': lines,
        'unavailable': unavailable,
        'discount': discount,
        'discount_percent': percent,
        'subtotal': quote['subtotal'],
        'discount_amount': quote['discount_amount'],
        'total': quote['total'],
        'item_count': sum(line['quantity'] for line in lines),
    }


def get_cart_view(session, user_id: int) -> Dict[str, Any]:
    """JSON view of the cart with freshly computed totals."""
    cart = get_cart(session, user_id)
    priced = price_cart(cart)
    discount = priced['discount']

    return {
        'items': [
            {
                'productId': line['product_id'],
                'name': line['name'],
                'price': money(line['price']),
                'image': line['image'],
                'quantity': line['quantity'],
                'stock': line['stock'],
                'total': money(line['price'] * line['quantity']),
            }
            for line in priced['lines']
        ],
        'itemCount': priced['item_count'],
        'subtotal': money(priced['subtotal']),
        'discount': {'code': discount.code, 'percent': discount.discount_percent} if discount else None,
        'discountAmount': money(priced['discount_amount']),
        'total': money(priced['total']),
    }


def _get_purchasable_product(session, product_id: int) -> Product:
    product = session.get(Product, product_id)
    if not product:
        raise NotFoundError('Product not found')
    if not product.active:
        raise ValidationError('Product is not available')
    return product


def add_item(session, user_id: int, product_id: int, quantity: int) -> int:
    """
    Add quantity of a product, merging with an existing line.

    Returns the cart's total item count.
    """
    if quantity < 1:
        raise ValidationError('Quantity must be at least 1')

    product = _get_purchasable_product(session, product_id)
    if product.stock < quantity:
        raise ValidationError('Insufficient stock')

    cart = get_or_create_cart(session, user_id)
    item = next((i for i in cart.items if i.product_id == product.id), None)
    if item:
        new_quantity = item.quantity + quantity
        if new_quantity > product.stock:
            raise ValidationError('Quantity exceeds available stock')
        item.quantity = new_quantity
    else:
        cart.items.append(CartItem(
            product_id=product.id,
            quantity=quantity,
            price_at_add=Decimal(product.price),
        ))

    session.commit()
    logger.info(f"[CART] User {user_id} added {quantity} x product {product_id}")
    return cart.item_count


def update_item_quantity(session, user_id: int, product_id: int, quantity: int) -> None:
    if quantity < 1:
        raise ValidationError('Quantity must be at least 1')

    product = session.get(Product, product_id)
    if not product:
        raise NotFoundError('Product not found')
    if quantity > product.stock:
        raise ValidationError('Quantity exceeds available stock')

    cart = get_cart(session, user_id)
    if not cart:
        raise NotFoundError('Cart not found')

    item = next((i for i in cart.items if i.product_id == product.id), None)
    if not item:
        raise NotFoundError('Item not in cart')

    item.quantity = quantity
    session.commit()


def remove_item(session, user_id: int, product_id: int) -> None:
    cart = get_cart(session, user_id)
    if not cart:
        raise NotFoundError('Cart not found')

    item = next((i for i in cart.items if i.product_id == product_id), None)
    if item:
        cart.items.remove(item)
        session.commit()


def clear_cart(session, user_id: int, commit: bool = True) -> None:
    """
    Remove every item and the applied discount.

    Settlement calls this with commit=False so clearing is part of its
    transaction.
    """
    cart_id = session.query(Cart.id).filter_by(user_id=user_id).scalar()
    if cart_id is None:
        return

    session.query(CartItem).filter(CartItem.cart_id == cart_id).delete(synchronize_session=False)
    session.query(Cart).filter(Cart.id == cart_id).update(
        {Cart.applied_discount_id: None}, synchronize_session=False
    )
    if commit:
        session.commit()
