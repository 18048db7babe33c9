"""Formatting helpers for money values in JSON payloads and emails."""
from datetime import datetime
from decimal import Decimal

from storefront.utils.dates import as_utc


def money(value) -> float:
    """Serialize a 2-dp amount for JSON responses."""
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(Decimal('0.01')))


def money_inr(value) -> str:
    """
    Format an amount in Indian Rupees with lakh grouping.

    Examples: 1234.5 -> "₹1,234.50", 100000 -> "₹1,00,000.00"
    """
    if value is None:
        value = 0
    amount = Decimal(str(value)).quantize(Decimal('0.01'))
    sign = '-' if amount < 0 else ''
    integer, fraction = f"{abs(amount):.2f}".split('.')

    if len(integer) > 3:
        head, tail = integer[:-3], integer[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        integer = ','.join(groups + [tail])

    return f"{sign}₹{integer}.{fraction}"


def isoformat(value):
    """ISO-8601 string (UTC for timestamps) or None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        value = as_utc(value)
    return value.isoformat()
