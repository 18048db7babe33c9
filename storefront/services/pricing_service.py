"""
Pricing engine.

Pure functions for subtotal, percentage discount and grand total. The same
functions price a checkout quote and re-verify it at settlement, so the
amount charged is always derived server-side.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Mapping, Optional

from storefront.exceptions import ValidationError, FatalError

CENT = Decimal('0.01')
ZERO = Decimal('0.00')


def to_decimal(value) -> Decimal:
    """Coerce ints, floats and strings to Decimal without float artifacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value) -> Decimal:
    """Round half-up at the 2-decimal boundary."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_subtotal(items: Iterable[Mapping[str, Any]]) -> Decimal:
    """Sum of price x quantity over all items. Empty -> 0."""
    subtotal = ZERO
    for item in items:
        subtotal += to_decimal(item['price']) * int(item['quantity'])
    return round_money(subtotal)


def compute_discount_amount(subtotal, percent) -> Decimal:
    """
    Percentage discount on a subtotal, rounded half-up to 2 decimals.

    Examples:
        compute_discount_amount(1000, 10) -> 100.00
        compute_discount_amount(333, 10)  -> 33.30
        compute_discount_amount(500, 25)  -> 125.00
    """
    percent = to_decimal(percent)
    if percent < 0 or percent > 100:
        raise ValidationError(f'Discount percent must be between 0 and 100, got {percent}')
    return round_money(to_decimal(subtotal) * percent / Decimal('100'))


def compute_total(subtotal, discount_amount) -> Decimal:
    """Subtotal minus discount. A negative result is an invariant breach."""
    total = round_money(to_decimal(subtotal) - to_decimal(discount_amount))
    if total < 0:
        raise FatalError('Order total cannot be negative')
    return total


def compute_quote(items: Iterable[Mapping[str, Any]], percent: Optional[int] = None) -> Dict[str, Decimal]:
    """Price a list of items with an optional discount percent."""
    subtotal = compute_subtotal(items)
    discount_amount = compute_discount_amount(subtotal, percent) if percent else ZERO
    return {
        'subtotal': subtotal,
        'discount_amount': discount_amount,
        'total': compute_total(subtotal, discount_amount),
    }


def to_minor_units(amount) -> int:
    """Convert a 2-dp amount to integer minor units (paise) for the gateway."""
    return int((round_money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_minor_units(amount_minor) -> Decimal:
    return round_money(Decimal(int(amount_minor)) / 100)
