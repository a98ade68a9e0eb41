"""Tests for checkout pricing."""
from decimal import Decimal

import pytest

from storefront.checkout import compute_discount, compute_pricing, is_free_delivery


class TestDiscount:
    @pytest.mark.parametrize("subtotal, expected", [
        (Decimal(0), Decimal(0)),
        (Decimal(499), Decimal(0)),
        (Decimal("499.99"), Decimal(0)),
        (Decimal(500), Decimal(50)),
        (Decimal(1000), Decimal(100)),
        (Decimal(505), Decimal(51)),    # 50.5 rounds half up
        (Decimal(504), Decimal(50)),
    ])
    def test_threshold_and_rounding(self, subtotal, expected):
        assert compute_discount(subtotal) == expected


class TestShipping:
    def test_guests_pay_shipping(self):
        assert not is_free_delivery(False, 0)

    def test_first_five_orders_ship_free(self):
        assert is_free_delivery(True, 4)
        assert not is_free_delivery(True, 5)


class TestBreakdown:
    def test_below_threshold_guest(self):
        p = compute_pricing(Decimal(499), False, 0)
        assert (p.discount_amount, p.shipping, p.total) == (0, 99, 598)

    def test_at_threshold_guest(self):
        p = compute_pricing(Decimal(500), False, 0)
        assert (p.discount_amount, p.shipping, p.total) == (50, 99, 549)

    def test_signed_in_user_with_free_delivery(self):
        p = compute_pricing(Decimal(1000), True, 4)
        assert (p.discount_amount, p.shipping, p.total) == (100, 0, 900)
        assert p.free_delivery

    def test_signed_in_user_after_five_orders(self):
        p = compute_pricing(Decimal(1000), True, 5)
        assert (p.shipping, p.total) == (99, 999)

    def test_to_dict(self):
        assert compute_pricing(Decimal(500), False, 0).to_dict() == {
            "subtotal": "500",
            "discount_amount": "50",
            "shipping": "99",
            "total": "549",
            "free_delivery": False,
        }
