"""
Payments — external payment gateway adapter.

    from shopflow import payments

    gateway = payments.PayPalGateway(settings.paypal, http)
    intent = await gateway.open_intent(amount, "USD", "Order 42", "42", ok_url, cancel_url)
"""

from shopflow.payments._types import (
    CAPTURE_COMPLETED,
    Capture,
    PaymentGateway,
    PaymentIntent,
    to_settlement,
)
from shopflow.payments._paypal import PayPalGateway

__all__ = (
    "CAPTURE_COMPLETED",
    "Capture",
    "PaymentGateway",
    "PaymentIntent",
    "to_settlement",
    "PayPalGateway",
)
