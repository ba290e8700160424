"""
Totals — join of the catalog and shipping branches.
"""

from kungfu import Ok, Error

from shopflow import graph as G
from shopflow.checkout.nodes._items import LineItemsNode
from shopflow.checkout.nodes._shipping import ShippingNode
from shopflow.db import MAX_DB_INT
from shopflow.domain import CheckoutQuote
from shopflow.errors import ValidationError


@G.node
class QuoteNode:
    """
    Subtotal, shipping fee and total for a checkout.

    Catalog errors are raised before shipping errors: a client fixing
    its cart first is the common path.
    """

    def __init__(self, quote: CheckoutQuote) -> None:
        self.quote = quote

    @classmethod
    def __compose__(cls, items: LineItemsNode, shipping: ShippingNode) -> "QuoteNode":
        match items.result:
            case Error(e):
                raise e
            case Ok(resolved):
                pass
        match shipping.result:
            case Error(e):
                raise e
            case Ok(fee):
                pass

        quote = CheckoutQuote(
            items=tuple(resolved),
            subtotal=sum(item.line_total for item in resolved),
            shipping=fee,
        )
        if quote.total > MAX_DB_INT:
            raise ValidationError("Order total exceeds the largest supported amount.")
        return cls(quote)


__all__ = ("QuoteNode",)
