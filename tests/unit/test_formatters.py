"""
Unit tests for money formatting helpers.
"""

import pytest
from datetime import datetime
from decimal import Decimal

from storefront.utils.formatters import money, money_inr, isoformat


class TestMoney:

    def test_json_amount(self):
        assert money(Decimal('1798.2')) == 1798.2
        assert money(None) == 0.0

    @pytest.mark.parametrize('value, expected', [
        (0, '₹0.00'),
        (999, '₹999.00'),
        (1234.5, '₹1,234.50'),
        (100000, '₹1,00,000.00'),
        (Decimal('12345678.9'), '₹1,23,45,678.90'),
    ])
    def test_inr_grouping(self, value, expected):
        assert money_inr(value) == expected

    def test_isoformat_marks_naive_as_utc(self):
        assert isoformat(datetime(2024, 3, 1, 12, 0)) == '2024-03-01T12:00:00+00:00'
        assert isoformat(None) is None
