"""
Checkout — order placement and gateway callbacks.
"""

from shopflow.checkout._validate import CheckoutDraft, ItemDraft, describe_errors, validate_checkout
from shopflow.checkout._workflow import CheckoutWorkflow
from shopflow.checkout import nodes

__all__ = (
    "CheckoutDraft",
    "ItemDraft",
    "describe_errors",
    "validate_checkout",
    "CheckoutWorkflow",
    "nodes",
)
