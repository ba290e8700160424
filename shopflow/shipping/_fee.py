"""
Shipping fee — distance-based tariff.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from shopflow._types import Money
from shopflow.config import Tariff


def round_to_unit(amount: Decimal, unit: int) -> Money:
    """Round half-up to the nearest multiple of ``unit``."""
    steps = (amount / unit).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return int(steps) * unit


def shipping_fee(distance_km: float, tariff: Tariff, *, return_leg: bool = False) -> Money:
    """
    Fee for a delivery of ``distance_km``.

        d <= 0      -> 0
        0 < d <= 1  -> first tier
        d > 1       -> first tier + (d - 1) * per-km rate, rounded to the unit

    A return leg costs ``return_multiplier`` times the one-way fee,
    re-rounded to the unit.
    """
    if distance_km <= 0:
        return 0

    distance = Decimal(str(distance_km))
    if distance <= 1:
        fee = tariff.first_tier_fee
    else:
        fee = round_to_unit(
            tariff.first_tier_fee + (distance - 1) * tariff.per_km_rate,
            tariff.rounding_unit,
        )

    if return_leg:
        fee = round_to_unit(fee * tariff.return_multiplier, tariff.rounding_unit)
    return fee


__all__ = ("round_to_unit", "shipping_fee")
