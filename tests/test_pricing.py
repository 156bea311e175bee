"""Tests for order money computation."""

from decimal import Decimal

from storefront.domain.pricing import compute_prices


class TestComputePrices:
    def test_small_order_pays_flat_shipping(self):
        prices = compute_prices([(Decimal("10.00"), 2)])

        assert prices.items_price == Decimal("20.00")
        assert prices.tax_price == Decimal("2.00")
        assert prices.shipping_price == Decimal("10.00")
        assert prices.total_price == Decimal("32.00")

    def test_shipping_free_above_threshold(self):
        prices = compute_prices([(Decimal("60.00"), 2)])

        assert prices.items_price == Decimal("120.00")
        assert prices.shipping_price == Decimal("0.00")
        assert prices.total_price == Decimal("132.00")

    def test_threshold_itself_still_pays_shipping(self):
        prices = compute_prices([(Decimal("50.00"), 2)])

        assert prices.items_price == Decimal("100.00")
        assert prices.shipping_price == Decimal("10.00")

    def test_tax_rounds_to_cents(self):
        prices = compute_prices([(Decimal("0.55"), 1)])

        # 10% of 0.55 is 0.055, rounded half up
        assert prices.tax_price == Decimal("0.06")
        assert prices.total_price == Decimal("10.61")

    def test_multiple_lines_are_summed(self):
        prices = compute_prices([(Decimal("19.99"), 3), (Decimal("5.01"), 1)])

        assert prices.items_price == Decimal("64.98")
        assert prices.tax_price == Decimal("6.50")

    def test_is_deterministic(self):
        lines = [(Decimal("12.34"), 3), (Decimal("7.00"), 1)]

        assert compute_prices(lines) == compute_prices(list(lines))

    def test_accepts_float_prices(self):
        prices = compute_prices([(10.1, 1)])

        assert prices.items_price == Decimal("10.10")
