"""
Shipping estimator — addresses in, fee and distance out.
"""

from __future__ import annotations

import logging
from typing import Protocol

import combinators as C

from shopflow import lift as L
from shopflow._types import Lazy
from shopflow.config import Tariff
from shopflow.domain import Coordinates, ShippingQuote
from shopflow.errors import ShopError, ShippingProviderError
from shopflow.shipping._fee import shipping_fee

logger = logging.getLogger(__name__)


class RoutingProvider(Protocol):
    async def geocode(self, address: str) -> Coordinates: ...

    async def distance_km(self, origin: Coordinates, destination: Coordinates) -> float: ...


def _shipping_error(exc: Exception) -> ShopError:
    if isinstance(exc, ShopError):
        return exc
    logger.error("routing provider raised unexpectedly", exc_info=exc)
    return ShippingProviderError("Unexpected routing provider failure.")


class ShippingEstimator:
    def __init__(self, provider: RoutingProvider, tariff: Tariff) -> None:
        self._provider = provider
        self._tariff = tariff

    @property
    def origin(self) -> str:
        return self._tariff.origin_address

    def estimate(
        self,
        from_address: str,
        to_address: str,
        is_return_leg: bool = False,
    ) -> Lazy[ShippingQuote, ShopError]:
        """
        Geocode both ends concurrently, then price the road distance.

        Errors: AddressUnresolvable, RouteUnavailable, DistanceTooLarge,
        ProviderAuthError, ShippingProviderError.
        """
        locate = C.gather2(
            L.catching_async(lambda: self._provider.geocode(from_address), on_error=_shipping_error),
            L.catching_async(lambda: self._provider.geocode(to_address), on_error=_shipping_error),
        )

        def measure(ends: tuple[Coordinates, Coordinates]) -> Lazy[float, ShopError]:
            origin, destination = ends
            return L.catching_async(
                lambda: self._provider.distance_km(origin, destination),
                on_error=_shipping_error,
            )

        def price(distance: float) -> ShippingQuote:
            fee = shipping_fee(distance, self._tariff, return_leg=is_return_leg)
            logger.info(
                "shipping %.2f km to %r costs %d (return leg: %s)",
                distance, to_address, fee, is_return_leg,
            )
            return ShippingQuote(fee=fee, distance_km=distance)

        return locate.then(measure).map(price)


__all__ = ("RoutingProvider", "ShippingEstimator")
