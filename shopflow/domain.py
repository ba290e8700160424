"""
Domain — catalog, order and checkout value types.

Orders own immutable snapshots of what was bought. Nothing here talks to
the database; rows are converted to these types in the repositories.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from shopflow._types import Money


# ═══════════════════════════════════════════════════════════════════════════════
# Statuses
# ═══════════════════════════════════════════════════════════════════════════════

class OrderStatus(Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class PaymentMethod(Enum):
    CASH = "Cash"
    EXTERNAL_GATEWAY = "ExternalGateway"

    @classmethod
    def parse(cls, raw: object) -> PaymentMethod | None:
        """Accept the canonical names plus the legacy provider name."""
        if raw == "Paypal":
            return cls.EXTERNAL_GATEWAY
        for method in cls:
            if raw == method.value:
                return method
        return None


class PaymentStatus(Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class ProductImage:
    url: str
    is_primary: bool = False
    order: int | None = None
    public_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "isPrimary": self.is_primary,
            "order": self.order,
            "publicId": self.public_id,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ProductImage:
        return cls(
            url=raw["url"],
            is_primary=bool(raw.get("isPrimary", False)),
            order=raw.get("order"),
            public_id=raw.get("publicId"),
        )


@dataclass(frozen=True, slots=True)
class Product:
    product_id: int
    name: str
    price: Money
    images: tuple[ProductImage, ...] = ()


@dataclass(frozen=True, slots=True)
class Variation:
    variation_id: str
    product_id: int
    size: str
    color: str
    amount: int


@dataclass(frozen=True, slots=True)
class ResolvedItem:
    """A checkout line matched against the catalog."""

    product: Product
    variation: Variation
    quantity: int

    @property
    def line_total(self) -> Money:
        return self.product.price * self.quantity


# ═══════════════════════════════════════════════════════════════════════════════
# Inventory
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class StockDecrement:
    product_id: Any
    variation_id: Any
    quantity: Any

    def is_well_formed(self) -> bool:
        return (
            _positive_int(self.product_id)
            and isinstance(self.variation_id, str)
            and bool(self.variation_id.strip())
            and _positive_int(self.quantity)
        )


@dataclass(frozen=True, slots=True)
class DecrementReport:
    applied_count: int
    skipped_count: int = 0
    failed_count: int = 0


def _positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


# ═══════════════════════════════════════════════════════════════════════════════
# Shipping
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(frozen=True, slots=True)
class ShippingQuote:
    fee: Money
    distance_km: float


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout input
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class CheckoutLine:
    product_id: int
    quantity: int
    size: str
    color: str


@dataclass(frozen=True, slots=True)
class CheckoutRequest:
    """A checkout request that passed structural validation."""

    user_id: str
    customer_name: str
    customer_phone: str
    to_address: str
    payment_method: PaymentMethod
    lines: tuple[CheckoutLine, ...]
    note: str = ""
    is_return: bool = False


@dataclass(frozen=True, slots=True)
class ShippingQuery:
    from_address: str
    to_address: str
    is_return: bool = False


@dataclass(frozen=True, slots=True)
class CheckoutQuote:
    """Everything priced, nothing persisted yet."""

    items: tuple[ResolvedItem, ...]
    subtotal: Money
    shipping: ShippingQuote

    @property
    def total(self) -> Money:
        return self.subtotal + self.shipping.fee


# ═══════════════════════════════════════════════════════════════════════════════
# Order
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class LineItem:
    product_id: int
    variation_id: str
    name: str
    unit_price: Money
    quantity: int
    size: str
    color: str
    images: tuple[ProductImage, ...] = ()

    @classmethod
    def snapshot(cls, item: ResolvedItem) -> LineItem:
        return cls(
            product_id=item.product.product_id,
            variation_id=item.variation.variation_id,
            name=item.product.name,
            unit_price=item.product.price,
            quantity=item.quantity,
            size=item.variation.size,
            color=item.variation.color,
            images=item.product.images,
        )


@dataclass(frozen=True, slots=True)
class Payment:
    method: PaymentMethod
    status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: str | None = None


@dataclass(frozen=True, slots=True)
class ShippingAddress:
    recipient: str
    phone: str
    address: str
    distance_km: float
    fee: Money


@dataclass(frozen=True, slots=True)
class NewOrder:
    user_id: str
    items: tuple[LineItem, ...]
    payment_method: PaymentMethod
    shipping: ShippingAddress
    total_price: Money
    note: str = ""

    @classmethod
    def from_quote(cls, request: CheckoutRequest, quote: CheckoutQuote) -> NewOrder:
        return cls(
            user_id=request.user_id,
            items=tuple(LineItem.snapshot(item) for item in quote.items),
            payment_method=request.payment_method,
            shipping=ShippingAddress(
                recipient=request.customer_name,
                phone=request.customer_phone,
                address=request.to_address,
                distance_km=quote.shipping.distance_km,
                fee=quote.shipping.fee,
            ),
            total_price=quote.total,
            note=request.note,
        )


@dataclass(frozen=True, slots=True)
class Order:
    id: str
    user_id: str
    items: tuple[LineItem, ...]
    total_price: Money
    status: OrderStatus
    payment: Payment
    shipping: ShippingAddress
    note: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def recomputed_total(self) -> Money:
        return sum(i.unit_price * i.quantity for i in self.items) + self.shipping.fee

    @property
    def awaiting_payment(self) -> bool:
        return (
            self.status is OrderStatus.PENDING
            and self.payment.status is PaymentStatus.PENDING
        )

    def decrements(self) -> list[StockDecrement]:
        return [
            StockDecrement(i.product_id, i.variation_id, i.quantity)
            for i in self.items
        ]


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout outcomes
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class CashPlaced:
    order: Order


@dataclass(frozen=True, slots=True)
class GatewayPending:
    order: Order
    approval_url: str


type CheckoutOutcome = CashPlaced | GatewayPending


class CallbackOutcome(Enum):
    CAPTURED = "captured"
    ALREADY_PROCESSED = "already_processed"
    DECLINED = "declined"
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class CallbackUrls:
    success: str
    cancel: str


__all__ = (
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "ProductImage",
    "Product",
    "Variation",
    "ResolvedItem",
    "StockDecrement",
    "DecrementReport",
    "Coordinates",
    "ShippingQuote",
    "CheckoutLine",
    "CheckoutRequest",
    "ShippingQuery",
    "CheckoutQuote",
    "LineItem",
    "Payment",
    "ShippingAddress",
    "NewOrder",
    "Order",
    "CashPlaced",
    "GatewayPending",
    "CheckoutOutcome",
    "CallbackOutcome",
    "CallbackUrls",
)
