# Overview: Money arithmetic and the fixed pricing constants.

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

# Chilean VAT (19%); fixed, never taken from a request
TAX_FACTOR = Decimal("1.19")
MARGIN_FACTOR = Decimal("1.40")
PRICE_ROUNDING_UNIT = Decimal("50")

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def net_from_total(total: Decimal) -> Decimal:
    """Tax-exclusive amount of a tax-inclusive total."""
    return quantize(total / TAX_FACTOR)


def selling_price_from_cost(cost: Decimal) -> Decimal:
    """
    cost * margin * tax, rounded to the nearest 50.

    Halves round up, matching the price list the store already prints.
    """
    if cost <= 0:
        return ZERO
    raw = cost * MARGIN_FACTOR * TAX_FACTOR
    units = (raw / PRICE_ROUNDING_UNIT).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return quantize(units * PRICE_ROUNDING_UNIT)


def money_to_json(amount: Decimal | None) -> float | None:
    if amount is None:
        return None
    return float(amount)
