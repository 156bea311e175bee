# storefront/domain/pricing.py
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Tuple

from storefront.utils.settings import TAX_RATE, SHIPPING_FLAT_FEE, FREE_SHIPPING_THRESHOLD

CENT = Decimal("0.01")


@dataclass(frozen=True)
class OrderPrices:
    items_price: Decimal
    tax_price: Decimal
    shipping_price: Decimal
    total_price: Decimal


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_prices(lines: Iterable[Tuple[Decimal, int]]) -> OrderPrices:
    """
    Derive the money fields of an order from (unit price, quantity) pairs.

    Pure: the same lines always give the same result. Shipping is free once
    the subtotal is strictly above FREE_SHIPPING_THRESHOLD, otherwise a flat
    fee is charged.
    """
    items_price = sum((_money(price) * qty for price, qty in lines), Decimal("0.00"))
    items_price = _money(items_price)

    tax_price = _money(items_price * TAX_RATE)
    shipping_price = Decimal("0.00") if items_price > FREE_SHIPPING_THRESHOLD else _money(SHIPPING_FLAT_FEE)
    total_price = _money(items_price + tax_price + shipping_price)

    return OrderPrices(
        items_price=items_price,
        tax_price=tax_price,
        shipping_price=shipping_price,
        total_price=total_price,
    )
