"""
Discount code lifecycle.

AVAILABLE codes can be applied to (and removed from) a cart any number of
times; applying never consumes them. The single AVAILABLE -> REDEEMED
transition is redeem_discount_code(), called only from order settlement.
Expiry is evaluated lazily and never written back.
"""
import logging
import math
import re
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from flask import current_app

from storefront.models import Cart, DiscountCode
from storefront.exceptions import ValidationError, NotFoundError, DiscountCodeError
from storefront.utils.dates import utcnow, get_expiry_date, is_expired

logger = logging.getLogger(__name__)

MAX_GENERATION_ATTEMPTS = 5


def code_pattern(prefix: str):
    """Regex matched by every generated code: PREFIX-XXXX-XXXX."""
    return re.compile(rf'^{re.escape(prefix)}-[A-Z0-9]{{4}}-[A-Z0-9]{{4}}$')


def generate_discount_code(prefix: str = None) -> str:
    """
    Generate a code in the format PREFIX-XXXX-XXXX.

    Uses UUID4 hex digits, upper-cased, for the two groups.
    """
    if prefix is None:
        prefix = current_app.config.get('DISCOUNT_CODE_PREFIX', 'UNIBLOX')
    raw = uuid.uuid4().hex.upper()
    return f"{prefix}-{raw[:4]}-{raw[4:8]}"


def normalize_code(code: str) -> str:
    return (code or '').strip().upper()


def create_discount_code(
    session,
    discount_percent: int,
    expiry_days: Optional[int] = None,
    generated_for_order: int = 0,
    now: datetime = None,
) -> DiscountCode:
    """
    Insert a new AVAILABLE code, expiring expiry_days from now when given.

    Does not commit: settlement mints inside its own transaction, the admin
    endpoint commits after this returns.
    """
    if not 1 <= int(discount_percent) <= 100:
        raise ValidationError('Discount must be between 1% and 100%')

    for _ in range(MAX_GENERATION_ATTEMPTS):
        code = generate_discount_code()
        if not session.query(DiscountCode.id).filter_by(code=code).first():
            break
    else:
        raise DiscountCodeError('Could not generate a unique discount code')

    discount = DiscountCode(
        code=code,
        discount_percent=int(discount_percent),
        is_used=False,
        generated_for_order=generated_for_order,
        expires_at=get_expiry_date(expiry_days, now) if expiry_days else None,
    )
    session.add(discount)
    session.flush()
    return discount


def get_discount_by_code(session, code: str) -> DiscountCode:
    discount = session.query(DiscountCode).filter_by(code=normalize_code(code)).first()
    if not discount:
        raise NotFoundError('Invalid discount code')
    return discount


def ensure_applicable(discount: DiscountCode, now: datetime = None) -> None:
    """Raise DiscountCodeError unless the code is AVAILABLE."""
    if discount.is_used:
        raise DiscountCodeError('This discount code has already been used')
    if is_expired(discount.expires_at, now):
        raise DiscountCodeError('This discount code has expired')


def apply_discount_to_cart(session, user_id: int, code: str) -> DiscountCode:
    """Attach an AVAILABLE code to the user's non-empty cart."""
    if not normalize_code(code):
        raise ValidationError('Discount code is required')

    discount = get_discount_by_code(session, code)
    ensure_applicable(discount)

    cart = session.query(Cart).filter_by(user_id=user_id).first()
    if not cart:
        raise NotFoundError('Cart not found')
    if not cart.items:
        raise ValidationError('Cannot apply discount to empty cart')

    cart.applied_discount_id = discount.id
    session.commit()
    logger.info(f"[DISCOUNT] Applied {discount.code} to cart of user {user_id}")
    return discount


def remove_discount_from_cart(session, user_id: int) -> None:
    """Detach any applied code. The code itself stays AVAILABLE."""
    cart = session.query(Cart).filter_by(user_id=user_id).first()
    if cart and cart.applied_discount_id is not None:
        cart.applied_discount_id = None
        session.commit()


def redeem_discount_code(session, discount_id: int, user_id: int, order_id: int, now: datetime = None) -> None:
    """
    AVAILABLE -> REDEEMED, as one conditional UPDATE.

    Zero affected rows means another settlement redeemed it first. Runs
    inside the caller's transaction and does not commit.
    """
    now = now or utcnow()
    updated = session.query(DiscountCode).filter(
        DiscountCode.id == discount_id,
        DiscountCode.is_used.is_(False),
    ).update(
        {
            DiscountCode.is_used: True,
            DiscountCode.used_by_id: user_id,
            DiscountCode.used_at: now,
            DiscountCode.redeemed_order_id: order_id,
        },
        synchronize_session=False,
    )
    if updated != 1:
        raise DiscountCodeError('This discount code has already been used')


# =====================================================
# ADMIN OPERATIONS
# =====================================================

def list_discount_codes(session, status_filter: str = 'all', page: int = 1, limit: int = 20) -> Dict[str, Any]:
    """Paginated listing, newest first. status_filter: all | used | unused."""
    page = max(page, 1)
    limit = max(min(limit, 100), 1)

    query = session.query(DiscountCode)
    if status_filter == 'used':
        query = query.filter(DiscountCode.is_used.is_(True))
    elif status_filter == 'unused':
        query = query.filter(DiscountCode.is_used.is_(False))

    total = query.count()
    discounts = (query
                 .order_by(DiscountCode.created_at.desc(), DiscountCode.id.desc())
                 .offset((page - 1) * limit)
                 .limit(limit)
                 .all())

    return {
        'discounts': [d.to_dict(include_usage=True) for d in discounts],
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'pages': math.ceil(total / limit) if total else 0,
        },
    }


def update_discount_expiry(session, discount_id: int, expiry_days: Optional[int]) -> DiscountCode:
    """Reset expiry to now + expiry_days, or clear it when expiry_days is None/0."""
    discount = session.get(DiscountCode, discount_id)
    if not discount:
        raise NotFoundError('Discount not found')
    if expiry_days is not None and expiry_days < 0:
        raise ValidationError('expiryDays must be positive')

    discount.expires_at = get_expiry_date(expiry_days) if expiry_days else None
    session.commit()
    return discount


def delete_discount_code(session, discount_id: int) -> None:
    discount = session.get(DiscountCode, discount_id)
    if not discount:
        raise NotFoundError('Discount not found')

    session.query(Cart).filter(Cart.applied_discount_id == discount_id).update(
        {Cart.applied_discount_id: None}, synchronize_session=False
    )
    session.delete(discount)
    session.commit()
    logger.info(f"[DISCOUNT] Deleted {discount.code}")
