"""
Shipping — fee and distance for one destination.

ShippingNode is shared by the checkout graph and the standalone fee
quote; ShippingFeeNode is the standalone view that raises on failure.
"""

from kungfu import Ok, Error, Result

from shopflow import graph as G
from shopflow.domain import ShippingQuery, ShippingQuote
from shopflow.errors import ShopError
from shopflow.shipping import ShippingEstimator


@G.node
class ShippingNode:
    def __init__(self, result: Result[ShippingQuote, ShopError]) -> None:
        self.result = result

    @classmethod
    async def __compose__(cls, query: ShippingQuery, estimator: ShippingEstimator) -> "ShippingNode":
        return cls(await estimator.estimate(query.from_address, query.to_address, query.is_return))


@G.node
class ShippingFeeNode:
    def __init__(self, quote: ShippingQuote) -> None:
        self.quote = quote

    @classmethod
    def __compose__(cls, shipping: ShippingNode) -> "ShippingFeeNode":
        match shipping.result:
            case Ok(quote):
                return cls(quote)
            case Error(e):
                raise e


__all__ = ("ShippingNode", "ShippingFeeNode")
