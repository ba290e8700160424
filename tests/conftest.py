"""Shared fixtures: a throwaway database per test plus fake providers."""

from dataclasses import dataclass
from typing import Any

import pytest
from sqlalchemy import func, select, update

from shopflow.cart import CartService
from shopflow.catalog import Catalog
from shopflow.checkout import CheckoutWorkflow
from shopflow.config import FrontendSettings, Settings
from shopflow.db import (
    CartItemTable,
    OrderTable,
    SessionFactory,
    VariationTable,
    create_database,
)
from shopflow.domain import (
    CallbackUrls,
    Coordinates,
    OrderStatus,
    Variation,
)
from shopflow.errors import AddressUnresolvable
from shopflow.inventory import InventoryUpdater
from shopflow.orders import OrderRepository
from shopflow.payments import Capture, PaymentIntent
from shopflow.shipping import ShippingEstimator


class FakeRouting:
    """Routing provider with canned distances per destination address."""

    def __init__(self, default_km: float = 0.5) -> None:
        self.default_km = default_km
        self.distances: dict[str, float] = {}
        self.unresolvable: set[str] = set()
        self._located: dict[Coordinates, str] = {}

    async def geocode(self, address: str) -> Coordinates:
        if address in self.unresolvable:
            raise AddressUnresolvable(address)
        point = Coordinates(lat=float(len(self._located) + 1), lng=0.0)
        self._located[point] = address
        return point

    async def distance_km(self, origin: Coordinates, destination: Coordinates) -> float:
        return self.distances.get(self._located[destination], self.default_km)


class FakeGateway:
    def __init__(self) -> None:
        self.opened: list[dict] = []
        self.captures: list[str] = []
        self.fail_open: Exception | None = None
        self.fail_capture: Exception | None = None
        self.capture_status = "COMPLETED"

    async def obtain_access_token(self) -> str:
        return "access-token"

    async def open_intent(self, amount, currency, description, order_id, success_url, cancel_url):
        if self.fail_open is not None:
            raise self.fail_open
        intent_id = f"INTENT-{len(self.opened) + 1}"
        self.opened.append({
            "amount": amount,
            "currency": currency,
            "order_id": order_id,
            "success_url": success_url,
            "cancel_url": cancel_url,
        })
        return PaymentIntent(approval_url=f"https://pay.test/approve/{intent_id}", intent_id=intent_id)

    async def capture_intent(self, intent_id: str) -> Capture:
        self.captures.append(intent_id)
        if self.fail_capture is not None:
            raise self.fail_capture
        return Capture(status=self.capture_status, transaction_id=f"CAPTURE-{intent_id}")


@dataclass
class Shirt:
    product_id: int
    medium: Variation
    large: Variation


URLS = CallbackUrls(success="http://shop.test/ok", cancel="http://shop.test/cancel")


def item(product_id: Any, quantity: Any = 1, size: Any = "M", color: Any = "White") -> dict[str, Any]:
    return {"product_id": product_id, "quantity": quantity, "size": size, "color": color}


def draft(*items: dict[str, Any], method: str = "Cash", **overrides) -> dict[str, Any]:
    """A checkout payload as the client would post it, minus the camelCase."""
    fields: dict[str, Any] = dict(
        customer_name="Nguyen Van A",
        customer_phone="0900000000",
        to_address="1 Le Duan, District 1",
        payment_method=method,
        items=list(items),
    )
    fields.update(overrides)
    return fields


# ═══════════════════════════════════════════════════════════════════════════════
# Direct table access for assertions and setup
# ═══════════════════════════════════════════════════════════════════════════════

async def stock_of(database: SessionFactory, variation_id: str) -> int:
    async with database() as session:
        return (await session.get(VariationTable, variation_id)).amount


async def order_count(database: SessionFactory) -> int:
    async with database() as session:
        return (await session.execute(select(func.count()).select_from(OrderTable))).scalar_one()


async def add_to_cart(database: SessionFactory, user_id: str, product_id: int, size: str, color: str) -> None:
    async with database() as session:
        session.add(CartItemTable(user_id=user_id, product_id=product_id, size=size, color=color, quantity=1))
        await session.commit()


async def cart_products(database: SessionFactory, user_id: str) -> list[int]:
    async with database() as session:
        rows = await session.execute(
            select(CartItemTable.product_id)
            .where(CartItemTable.user_id == user_id)
            .order_by(CartItemTable.id)
        )
        return list(rows.scalars())


async def force_status(database: SessionFactory, order_id: str, status: OrderStatus) -> None:
    async with database() as session:
        await session.execute(update(OrderTable).where(OrderTable.id == order_id).values(status=status.value))
        await session.commit()


@pytest.fixture
async def database(tmp_path):
    session_factory, engine = await create_database(f"sqlite+aiosqlite:///{tmp_path / 'shop.db'}")
    yield session_factory
    await engine.dispose()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        frontend=FrontendSettings(base_url="http://front.test"),
        api_tokens={"tok-alice": "alice"},
    )


@pytest.fixture
def catalog(database) -> Catalog:
    return Catalog(database)


@pytest.fixture
def orders(database) -> OrderRepository:
    return OrderRepository(database)


@pytest.fixture
def cart(database) -> CartService:
    return CartService(database)


@pytest.fixture
def inventory(database) -> InventoryUpdater:
    return InventoryUpdater(database)


@pytest.fixture
def routing() -> FakeRouting:
    return FakeRouting()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
async def shirt(catalog) -> Shirt:
    product, (medium, large) = await catalog.add_product(
        "Linen shirt",
        100_000,
        [("M", "White", 10), ("L", "White", 1)],
    )
    return Shirt(product.product_id, medium, large)


@pytest.fixture
def workflow(settings, orders, catalog, routing, inventory, cart, gateway) -> CheckoutWorkflow:
    return CheckoutWorkflow(
        settings,
        orders=orders,
        catalog=catalog,
        estimator=ShippingEstimator(routing, settings.tariff),
        inventory=inventory,
        cart=cart,
        gateway=gateway,
    )
