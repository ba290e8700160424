"""
Payment gateway contract.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Protocol

from shopflow._types import Money

CAPTURE_COMPLETED = "COMPLETED"


@dataclass(frozen=True, slots=True)
class PaymentIntent:
    approval_url: str
    intent_id: str


@dataclass(frozen=True, slots=True)
class Capture:
    status: str
    transaction_id: str | None

    @property
    def completed(self) -> bool:
        return self.status == CAPTURE_COMPLETED


class PaymentGateway(Protocol):
    async def obtain_access_token(self) -> str: ...

    async def open_intent(
        self,
        amount: Decimal,
        currency: str,
        description: str,
        order_id: str,
        success_url: str,
        cancel_url: str,
    ) -> PaymentIntent: ...

    async def capture_intent(self, intent_id: str) -> Capture: ...


def to_settlement(amount: Money, exchange_rate: Decimal) -> Decimal:
    """Convert a shop amount to the gateway currency, 2 decimals, half-up."""
    return (Decimal(amount) / exchange_rate).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


__all__ = (
    "CAPTURE_COMPLETED",
    "PaymentIntent",
    "Capture",
    "PaymentGateway",
    "to_settlement",
)
