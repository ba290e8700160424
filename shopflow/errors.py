"""
Errors — the checkout error taxonomy.

Every error carries a machine-checkable ``kind``, the HTTP ``status`` it
maps to, a one-line ``message`` and a ``details`` list for the client.
Infrastructure kinds (5xx) hide their details from clients; the original
cause is logged where it happened.
"""

from __future__ import annotations

from collections.abc import Sequence


# ═══════════════════════════════════════════════════════════════════════════════
# Base
# ═══════════════════════════════════════════════════════════════════════════════

class ShopError(Exception):
    kind: str = "internal"
    status: int = 500
    summary: str = "Internal server error."

    def __init__(self, *details: str, message: str | None = None) -> None:
        self.message = message or self.summary
        self.details = tuple(details)
        super().__init__(self.message, *self.details)

    @property
    def is_internal(self) -> bool:
        return self.status >= 500

    def public_details(self) -> tuple[str, ...]:
        """Details safe to return to a client."""
        if self.is_internal:
            return (self.summary,)
        return self.details

    def __str__(self) -> str:
        if not self.details:
            return self.message
        return f"{self.message} ({'; '.join(self.details)})"


# ═══════════════════════════════════════════════════════════════════════════════
# Request validation
# ═══════════════════════════════════════════════════════════════════════════════

class ValidationError(ShopError):
    kind = "validation"
    status = 400
    summary = "Invalid request data."


class Unauthorized(ShopError):
    kind = "unauthorized"
    status = 401
    summary = "Authentication required."


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════

class CatalogError(ShopError):
    status = 404


class ProductNotFound(CatalogError):
    kind = "not_found"
    summary = "Product not found."

    def __init__(self, product_id: int) -> None:
        super().__init__(f"Product {product_id} does not exist.")
        self.product_id = product_id


class VariationNotFound(CatalogError):
    kind = "variation_not_found"
    summary = "Product variation not found."

    def __init__(self, product_id: int, name: str, size: str, color: str) -> None:
        super().__init__(
            f"Product {name} (ID: {product_id}) has no variation "
            f"with size '{size}' and color '{color}'."
        )
        self.product_id = product_id
        self.size = size
        self.color = color


class InsufficientStock(CatalogError):
    kind = "insufficient_stock"
    status = 409
    summary = "Not enough stock."

    def __init__(
        self,
        product_id: int,
        name: str,
        size: str,
        color: str,
        available: int,
        requested: int,
    ) -> None:
        super().__init__(
            f"Product {name} ({size}/{color}) has only {available} left, "
            f"{requested} requested."
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class CatalogErrors(ShopError):
    """Every failed line of one checkout, reported together."""

    kind = "catalog"
    summary = "One or more products are invalid or out of stock."

    def __init__(self, errors: Sequence[CatalogError]) -> None:
        super().__init__(*(d for e in errors for d in e.details))
        self.errors = tuple(errors)

    @property
    def status(self) -> int:  # type: ignore[override]
        if any(isinstance(e, InsufficientStock) for e in self.errors):
            return 409
        return 404


# ═══════════════════════════════════════════════════════════════════════════════
# Shipping
# ═══════════════════════════════════════════════════════════════════════════════

class ShippingError(ShopError):
    status = 400


class AddressUnresolvable(ShippingError):
    kind = "address_unresolvable"
    summary = "Address could not be located."

    def __init__(self, address: str) -> None:
        super().__init__(f"Could not locate address: {address}")
        self.address = address


class RouteUnavailable(ShippingError):
    kind = "route_unavailable"
    summary = "No route between the two addresses."


class DistanceTooLarge(ShippingError):
    kind = "distance_too_large"
    summary = "Distance is too large to deliver."


class ShippingProviderError(ShippingError):
    kind = "shipping_provider"
    status = 502
    summary = "Shipping provider is unavailable."


# ═══════════════════════════════════════════════════════════════════════════════
# Providers & payment
# ═══════════════════════════════════════════════════════════════════════════════

class ProviderAuthError(ShopError):
    kind = "provider_auth"
    status = 500
    summary = "Provider configuration error."


class IntentCreationFailed(ShopError):
    kind = "intent_creation_failed"
    status = 502
    summary = "Payment provider rejected the payment."


class PaymentInitiationError(ShopError):
    kind = "payment_initiation"
    status = 502
    summary = "Could not start the online payment."


class CaptureFailed(ShopError):
    kind = "capture_failed"
    status = 502
    summary = "Could not capture the payment."


# ═══════════════════════════════════════════════════════════════════════════════
# Infrastructure
# ═══════════════════════════════════════════════════════════════════════════════

class PersistenceError(ShopError):
    kind = "persistence"
    status = 500
    summary = "Server error while processing the order."


__all__ = (
    "ShopError",
    "ValidationError",
    "Unauthorized",
    "CatalogError",
    "ProductNotFound",
    "VariationNotFound",
    "InsufficientStock",
    "CatalogErrors",
    "ShippingError",
    "AddressUnresolvable",
    "RouteUnavailable",
    "DistanceTooLarge",
    "ShippingProviderError",
    "ProviderAuthError",
    "IntentCreationFailed",
    "PaymentInitiationError",
    "CaptureFailed",
    "PersistenceError",
)
