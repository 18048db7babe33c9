"""
Unit tests for the pricing engine.
"""

import pytest
from decimal import Decimal

from storefront.exceptions import ValidationError, FatalError
from storefront.services.pricing_service import (
    compute_subtotal, compute_discount_amount, compute_total, compute_quote,
    round_money, to_minor_units, from_minor_units,
)


class TestSubtotal:
    """Tests for compute_subtotal."""

    def test_empty_items(self):
        assert compute_subtotal([]) == Decimal('0.00')

    def test_sums_price_times_quantity(self):
        items = [
            {'price': Decimal('999.00'), 'quantity': 2},
            {'price': '49.50', 'quantity': 3},
        ]
        assert compute_subtotal(items) == Decimal('2146.50')

    def test_float_prices_do_not_leak_binary_error(self):
        items = [{'price': 0.1, 'quantity': 3}]
        assert compute_subtotal(items) == Decimal('0.30')


class TestDiscountAmount:
    """Tests for compute_discount_amount."""

    @pytest.mark.parametrize('subtotal, percent, expected', [
        (1000, 10, '100.00'),
        (333, 10, '33.30'),
        (500, 25, '125.00'),
        (1234.56, 0, '0.00'),
        (1234.56, 100, '1234.56'),
    ])
    def test_known_values(self, subtotal, percent, expected):
        assert compute_discount_amount(subtotal, percent) == Decimal(expected)

    def test_rounds_half_up_at_two_decimals(self):
        # 0.05 * 10% = 0.005 -> 0.01
        assert compute_discount_amount('0.05', 10) == Decimal('0.01')
        # 33.35 * 10% = 3.335 -> 3.34
        assert compute_discount_amount('33.35', 10) == Decimal('3.34')

    @pytest.mark.parametrize('percent', [-1, 101, 150])
    def test_rejects_percent_out_of_range(self, percent):
        with pytest.raises(ValidationError):
            compute_discount_amount(100, percent)


class TestTotal:
    """Tests for compute_total and compute_quote."""

    def test_total_is_subtotal_minus_discount(self):
        assert compute_total(Decimal('1998.00'), Decimal('199.80')) == Decimal('1798.20')

    def test_negative_total_is_fatal(self):
        with pytest.raises(FatalError):
            compute_total(Decimal('10.00'), Decimal('10.01'))

    @pytest.mark.parametrize('subtotal', ['0', '0.01', '99.99', '333', '1998', '123456.78'])
    @pytest.mark.parametrize('percent', [0, 1, 10, 33, 50, 99, 100])
    def test_total_matches_definition_and_is_non_negative(self, subtotal, percent):
        s = Decimal(subtotal)
        total = compute_total(s, compute_discount_amount(s, percent))
        assert total == round_money(s) - round_money(s * percent / 100)
        assert total >= 0

    def test_quote_without_discount(self):
        quote = compute_quote([{'price': '999', 'quantity': 2}])
        assert quote == {
            'subtotal': Decimal('1998.00'),
            'discount_amount': Decimal('0.00'),
            'total': Decimal('1998.00'),
        }

    def test_quote_with_discount(self):
        quote = compute_quote([{'price': '999', 'quantity': 2}], 10)
        assert quote['discount_amount'] == Decimal('199.80')
        assert quote['total'] == Decimal('1798.20')


class TestMinorUnits:
    """Gateway amount conversion."""

    def test_to_paise(self):
        assert to_minor_units(Decimal('1798.20')) == 179820
        assert to_minor_units('0.01') == 1

    def test_from_paise(self):
        assert from_minor_units(179820) == Decimal('1798.20')
