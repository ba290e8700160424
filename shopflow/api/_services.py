"""
Service container — everything a request handler needs, built once.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from shopflow.api._auth import Authenticator, StaticTokens
from shopflow.cart import CartService
from shopflow.catalog import Catalog
from shopflow.checkout import CheckoutWorkflow
from shopflow.config import Settings
from shopflow.db import SessionFactory
from shopflow.inventory import InventoryUpdater
from shopflow.orders import OrderRepository
from shopflow.payments import PaymentGateway, PayPalGateway
from shopflow.shipping import GoongClient, RoutingProvider, ShippingEstimator


@dataclass(frozen=True, slots=True)
class Services:
    settings: Settings
    workflow: CheckoutWorkflow
    authenticator: Authenticator


def build_services(
    settings: Settings,
    session_factory: SessionFactory,
    routing: RoutingProvider,
    gateway: PaymentGateway,
    authenticator: Authenticator | None = None,
) -> Services:
    workflow = CheckoutWorkflow(
        settings,
        orders=OrderRepository(session_factory),
        catalog=Catalog(session_factory),
        estimator=ShippingEstimator(routing, settings.tariff),
        inventory=InventoryUpdater(session_factory),
        cart=CartService(session_factory),
        gateway=gateway,
    )
    return Services(
        settings=settings,
        workflow=workflow,
        authenticator=authenticator or StaticTokens(settings.api_tokens),
    )


def build_live_services(
    settings: Settings,
    session_factory: SessionFactory,
    http: httpx.AsyncClient,
) -> Services:
    """Wire the real Goong and PayPal adapters over one shared HTTP client."""
    return build_services(
        settings,
        session_factory,
        routing=GoongClient(settings.goong, http),
        gateway=PayPalGateway(settings.paypal, http),
    )


__all__ = ("Services", "build_services", "build_live_services")
