"""
Goong — geocoding and road distance over HTTP.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from shopflow.config import GoongSettings
from shopflow.domain import Coordinates
from shopflow.errors import (
    AddressUnresolvable,
    DistanceTooLarge,
    ProviderAuthError,
    RouteUnavailable,
    ShippingProviderError,
)

logger = logging.getLogger(__name__)

_NO_ROUTE = frozenset({"ZERO_RESULTS", "NOT_FOUND"})


class GoongClient:
    """
    RoutingProvider backed by the Goong REST API.

    Authentication failures (401/403) raise ``ProviderAuthError``; they are
    configuration errors and are never retried.
    """

    def __init__(self, settings: GoongSettings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http

    async def geocode(self, address: str) -> Coordinates:
        data = await self._get(
            self._settings.geocode_url,
            {"address": address},
            what=f"geocode {address!r}",
        )
        results = data.get("results") or []
        if not results:
            logger.warning("geocoding found nothing for %r", address)
            raise AddressUnresolvable(address)
        try:
            location = results[0]["geometry"]["location"]
            return Coordinates(lat=float(location["lat"]), lng=float(location["lng"]))
        except (KeyError, TypeError, ValueError) as e:
            raise ShippingProviderError(f"Malformed geocode response for {address!r}") from e

    async def distance_km(self, origin: Coordinates, destination: Coordinates) -> float:
        data = await self._get(
            self._settings.distance_url,
            {
                "origins": f"{origin.lat},{origin.lng}",
                "destinations": f"{destination.lat},{destination.lng}",
                "vehicle": self._settings.vehicle,
            },
            what="distance matrix",
        )
        element = _first_element(data)
        status = (element or {}).get("status") or data.get("status") or "UNKNOWN_ERROR"
        if status == "OK" and element is not None:
            return float(element["distance"]["value"]) / 1000

        logger.warning("distance matrix returned %s", status)
        if status in _NO_ROUTE:
            raise RouteUnavailable("No route found between the two locations.")
        if status == "MAX_ROUTE_LENGTH_EXCEEDED":
            raise DistanceTooLarge("The distance is too large to compute.")
        raise ShippingProviderError(f"Distance matrix status: {status}")

    async def _get(self, url: str, params: dict[str, str], *, what: str) -> dict[str, Any]:
        if not self._settings.api_key:
            raise ProviderAuthError("Goong API key is not configured.")
        try:
            response = await self._http.get(url, params={**params, "api_key": self._settings.api_key})
        except httpx.HTTPError as e:
            logger.error("goong %s failed: %s", what, e)
            raise ShippingProviderError(f"Could not reach the map provider ({what}).") from e

        if response.status_code in (401, 403):
            logger.error("goong rejected credentials (%d) for %s", response.status_code, what)
            raise ProviderAuthError("Map provider rejected the API key.")
        if response.is_error:
            logger.error("goong %s returned %d: %s", what, response.status_code, response.text)
            raise ShippingProviderError(f"Map provider error {response.status_code} ({what}).")
        return response.json()


def _first_element(data: dict[str, Any]) -> dict[str, Any] | None:
    rows = data.get("rows") or []
    if not rows:
        return None
    elements = rows[0].get("elements") or []
    return elements[0] if elements else None


__all__ = ("GoongClient",)
