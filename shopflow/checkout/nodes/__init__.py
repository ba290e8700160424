"""
Pricing graph nodes.

- _input.py    — RequestNode (entry point)
- _items.py    — LineItemsNode (catalog lookups)
- _shipping.py — ShippingNode, ShippingFeeNode (fee quote)
- _totals.py   — QuoteNode (join)

LineItemsNode and ShippingNode share no dependency, so they run
concurrently.
"""

from shopflow.checkout.nodes._input import RequestNode
from shopflow.checkout.nodes._items import LineItemsNode
from shopflow.checkout.nodes._shipping import ShippingNode, ShippingFeeNode
from shopflow.checkout.nodes._totals import QuoteNode

__all__ = (
    "RequestNode",
    "LineItemsNode",
    "ShippingNode",
    "ShippingFeeNode",
    "QuoteNode",
)
