"""
Wire models — JSON in, domain out; domain in, JSON out.

The checkout body itself is ``shopflow.checkout.CheckoutDraft``; FastAPI
validates it and violations come back as one 400 ``validation`` envelope.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StringConstraints
from pydantic.alias_generators import to_camel

from shopflow.domain import (
    CashPlaced,
    CheckoutOutcome,
    GatewayPending,
    LineItem,
    Order,
    ProductImage,
    ShippingQuote,
)
from shopflow.errors import ShopError


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Shipping fee
# ═══════════════════════════════════════════════════════════════════════════════

class ShippingFeeIn(_Camel):
    to_address: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    is_return: StrictBool = False


class ShippingFeeData(_Camel):
    total_fee: int
    distance_km: float
    distance: str


class ShippingFeeOut(_Camel):
    success: bool = True
    data: ShippingFeeData

    @classmethod
    def from_domain(cls, quote: ShippingQuote) -> ShippingFeeOut:
        return cls(data=ShippingFeeData(
            total_fee=quote.fee,
            distance_km=quote.distance_km,
            distance=f"{quote.distance_km:.2f} km",
        ))


# ═══════════════════════════════════════════════════════════════════════════════
# Create order
# ═══════════════════════════════════════════════════════════════════════════════

class ImageOut(_Camel):
    url: str
    is_primary: bool = False
    order: int | None = None
    public_id: str | None = None

    @classmethod
    def from_domain(cls, image: ProductImage) -> ImageOut:
        return cls(
            url=image.url,
            is_primary=image.is_primary,
            order=image.order,
            public_id=image.public_id,
        )


class LineItemOut(_Camel):
    product_id: int
    variation_id: str
    name: str
    price: int
    quantity: int
    size: str
    color: str
    images: list[ImageOut] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, item: LineItem) -> LineItemOut:
        return cls(
            product_id=item.product_id,
            variation_id=item.variation_id,
            name=item.name,
            price=item.unit_price,
            quantity=item.quantity,
            size=item.size,
            color=item.color,
            images=[ImageOut.from_domain(image) for image in item.images],
        )


class PaymentOut(_Camel):
    method: str
    status: str
    transaction_id: str | None = None


class ShippingAddressOut(_Camel):
    recipient: str
    phone: str
    address: str
    distance_km: float
    shipping_fee: int


class OrderOut(_Camel):
    id: str
    user_id: str
    items: list[LineItemOut]
    total_price: int
    status: str
    payment: PaymentOut
    shipping_address: ShippingAddressOut
    note: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, order: Order) -> OrderOut:
        return cls(
            id=order.id,
            user_id=order.user_id,
            items=[LineItemOut.from_domain(item) for item in order.items],
            total_price=order.total_price,
            status=order.status.value,
            payment=PaymentOut(
                method=order.payment.method.value,
                status=order.payment.status.value,
                transaction_id=order.payment.transaction_id,
            ),
            shipping_address=ShippingAddressOut(
                recipient=order.shipping.recipient,
                phone=order.shipping.phone,
                address=order.shipping.address,
                distance_km=order.shipping.distance_km,
                shipping_fee=order.shipping.fee,
            ),
            note=order.note,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class CreateOrderOut(_Camel):
    message: str
    order: OrderOut
    payment_url: str | None = None

    @classmethod
    def from_domain(cls, outcome: CheckoutOutcome) -> CreateOrderOut:
        match outcome:
            case CashPlaced(order):
                return cls(message="Order placed successfully.", order=OrderOut.from_domain(order))
            case GatewayPending(order, approval_url):
                return cls(
                    message="Order created. Continue to the payment page.",
                    order=OrderOut.from_domain(order),
                    payment_url=approval_url,
                )


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorOut(_Camel):
    success: bool = False
    error: str
    message: str
    details: list[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, error: ShopError) -> ErrorOut:
        return cls(
            error=error.kind,
            message=error.summary if error.is_internal else error.message,
            details=list(error.public_details()),
        )


__all__ = (
    "ShippingFeeIn",
    "ShippingFeeData",
    "ShippingFeeOut",
    "ImageOut",
    "LineItemOut",
    "PaymentOut",
    "ShippingAddressOut",
    "OrderOut",
    "CreateOrderOut",
    "ErrorOut",
)
