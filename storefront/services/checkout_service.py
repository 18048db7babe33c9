"""
Checkout quoting.

Prices the cart server-side, opens a remote payment order for exactly that
amount and stores the quote. Confirmation later reads amounts back from the
stored quote only.
"""
import logging
from datetime import datetime
from typing import Any, Dict

from flask import current_app

from storefront.models import CheckoutQuote, QuoteStatus
from storefront.exceptions import ValidationError, InsufficientStockError
from storefront.services.cart_service import get_cart, price_cart
from storefront.services.pricing_service import to_minor_units

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ('name', 'address', 'city', 'state', 'pincode', 'phone')


def create_checkout(session, user_id: int, shipping_address: Dict[str, Any], gateway) -> CheckoutQuote:
    """
    Quote the user's cart and open a payment order at the gateway.

    Args:
        session: Database session
        user_id: Purchaser
        shipping_address: Validated address mapping (ADDRESS_FIELDS)
        gateway: Payment gateway client (create_order)

    Returns:
        Persisted CheckoutQuote in PENDING status

    Raises:
        ValidationError: empty cart or unavailable product
        InsufficientStockError: a line exceeds current stock
        TransientError: gateway unreachable
    """
    missing = [field for field in ADDRESS_FIELDS if not shipping_address.get(field)]
    if missing:
        raise ValidationError(f"Shipping address incomplete: {', '.join(missing)}")

    cart = get_cart(session, user_id)
    if not cart or not cart.items:
        raise ValidationError('Cart is empty')

    priced = price_cart(cart)
    if priced['unavailable']:
        name = priced['unavailable'][0]['name']
        raise ValidationError(f'Product {name} is no longer available')

    for line in priced['lines']:
        if line['quantity'] > line['stock']:
            raise InsufficientStockError(line['name'], line['quantity'], line['stock'])

    total = priced['total']
    amount_minor = to_minor_units(total)
    if amount_minor < 100:
        raise ValidationError('Order total must be at least 1.00')

    currency = current_app.config.get('PAYMENT_CURRENCY', 'INR')
    discount = priced['discount']

    remote_order = gateway.create_order(
        amount_minor=amount_minor,
        currency=currency,
        receipt=f"rcpt_{user_id}_{int(datetime.now().timestamp() * 1000)}",
        notes={'userId': str(user_id), 'discountCode': discount.code if discount else ''},
    )

    quote = CheckoutQuote(
        remote_order_id=remote_order['id'],
        user_id=user_id,
        items=[
            {
                'product_id': line['product_id'],
                'name': line['name'],
                'image': line['image'],
                'price': str(line['price']),
                'quantity': line['quantity'],
            }
            for line in priced['lines']
        ],
        subtotal=priced['subtotal'],
        discount_code_id=discount.id if discount else None,
        discount_percent=priced['discount_percent'],
        discount_amount=priced['discount_amount'],
        total=total,
        amount_minor=amount_minor,
        currency=currency,
        shipping_address={field: str(shipping_address[field]).strip() for field in ADDRESS_FIELDS},
        status=QuoteStatus.PENDING,
    )
    session.add(quote)
    session.commit()

    logger.info(
        f"[CHECKOUT] Quote {quote.remote_order_id} for user {user_id}: "
        f"subtotal={quote.subtotal} discount={quote.discount_amount} total={quote.total}"
    )
    return quote
