"""
PayPal — Orders v2 REST adapter.

Stateless: every call re-authenticates with the client-credentials grant.
Checkout is not a hot path, so the token is never cached.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

import httpx

from shopflow.config import PayPalSettings
from shopflow.errors import CaptureFailed, IntentCreationFailed, ProviderAuthError
from shopflow.payments._types import Capture, PaymentIntent

logger = logging.getLogger(__name__)


class PayPalGateway:
    def __init__(self, settings: PayPalSettings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http

    def _url(self, path: str) -> str:
        return f"{self._settings.base_url.rstrip('/')}{path}"

    # ───────────────────────────────────────────────────────────────────────────
    # Auth
    # ───────────────────────────────────────────────────────────────────────────

    async def obtain_access_token(self) -> str:
        if not (self._settings.client_id and self._settings.client_secret):
            raise ProviderAuthError("PayPal credentials are not configured.")
        try:
            response = await self._http.post(
                self._url("/v1/oauth2/token"),
                content="grant_type=client_credentials",
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                auth=(self._settings.client_id, self._settings.client_secret),
            )
        except httpx.HTTPError as e:
            logger.error("paypal token request failed: %s", e)
            raise ProviderAuthError("Could not obtain a PayPal access token.") from e

        if response.is_error:
            logger.error("paypal token request returned %d: %s", response.status_code, response.text)
            raise ProviderAuthError("Could not obtain a PayPal access token.")
        token = response.json().get("access_token")
        if not token:
            raise ProviderAuthError("PayPal token response carried no access token.")
        return token

    # ───────────────────────────────────────────────────────────────────────────
    # Intents
    # ───────────────────────────────────────────────────────────────────────────

    async def open_intent(
        self,
        amount: Decimal,
        currency: str,
        description: str,
        order_id: str,
        success_url: str,
        cancel_url: str,
    ) -> PaymentIntent:
        """Create a capture-on-approval order and return its approval link."""
        token = await self.obtain_access_token()
        body = {
            "intent": "CAPTURE",
            "purchase_units": [{
                "reference_id": order_id,
                "description": description or f"Payment for order #{order_id}",
                "amount": {"currency_code": currency, "value": f"{amount:.2f}"},
            }],
            "application_context": {
                "brand_name": self._settings.brand_name,
                "landing_page": "LOGIN",
                "shipping_preference": "NO_SHIPPING",
                "user_action": "PAY_NOW",
                "return_url": _with_order(success_url, order_id),
                "cancel_url": _with_order(cancel_url, order_id),
            },
        }
        logger.info("opening paypal intent for order %s: %s %s", order_id, amount, currency)
        try:
            response = await self._http.post(
                self._url("/v2/checkout/orders"),
                json=body,
                headers=_bearer(token),
            )
        except httpx.HTTPError as e:
            logger.error("paypal intent request failed: %s", e)
            raise IntentCreationFailed("Could not reach PayPal.") from e

        if response.is_error:
            logger.error("paypal intent returned %d: %s", response.status_code, response.text)
            raise IntentCreationFailed(f"PayPal answered {response.status_code}.")

        data = response.json()
        approval_url = next(
            (link.get("href") for link in data.get("links", []) if link.get("rel") == "approve"),
            None,
        )
        if not approval_url or not data.get("id"):
            logger.error("paypal intent without approval link: %s", data)
            raise IntentCreationFailed("PayPal returned no approval link.")
        return PaymentIntent(approval_url=approval_url, intent_id=data["id"])

    async def capture_intent(self, intent_id: str) -> Capture:
        """
        Capture an approved intent.

        An intent that was already captured is reported from its current
        state instead of being captured again.
        """
        token = await self.obtain_access_token()
        try:
            response = await self._http.post(
                self._url(f"/v2/checkout/orders/{intent_id}/capture"),
                json={},
                headers=_bearer(token),
            )
        except httpx.HTTPError as e:
            logger.error("paypal capture of %s failed: %s", intent_id, e)
            raise CaptureFailed("Could not reach PayPal.") from e

        if response.status_code == 422 and _issue(response) == "ORDER_ALREADY_CAPTURED":
            logger.warning("paypal intent %s was already captured", intent_id)
            return await self._lookup(intent_id, token)
        if response.is_error:
            logger.error("paypal capture of %s returned %d: %s", intent_id, response.status_code, response.text)
            raise CaptureFailed(f"PayPal answered {response.status_code}.")
        return _capture(response.json(), intent_id)

    async def _lookup(self, intent_id: str, token: str) -> Capture:
        try:
            response = await self._http.get(
                self._url(f"/v2/checkout/orders/{intent_id}"),
                headers=_bearer(token),
            )
        except httpx.HTTPError as e:
            raise CaptureFailed("Could not reach PayPal.") from e
        if response.is_error:
            raise CaptureFailed(f"PayPal answered {response.status_code}.")
        return _capture(response.json(), intent_id)


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}


def _with_order(url: str, order_id: str) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}orderId={order_id}"


def _issue(response: httpx.Response) -> str | None:
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    details = data.get("details")
    if not isinstance(details, list) or not details or not isinstance(details[0], dict):
        return None
    return details[0].get("issue")


def _capture(data: dict[str, Any], intent_id: str) -> Capture:
    captures = [
        capture
        for unit in data.get("purchase_units") or []
        for capture in (unit.get("payments") or {}).get("captures") or []
    ]
    transaction_id = captures[0].get("id") if captures else None
    return Capture(
        status=str(data.get("status", "UNKNOWN")),
        transaction_id=transaction_id or data.get("id") or intent_id,
    )


__all__ = ("PayPalGateway",)
