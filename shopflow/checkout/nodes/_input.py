"""
Input — RequestNode (entry point to the pricing graph).
"""

from shopflow import graph as G
from shopflow.domain import CheckoutRequest


@G.node
class RequestNode:
    def __init__(self, data: CheckoutRequest) -> None:
        self.data = data

    @classmethod
    def __compose__(cls, request: CheckoutRequest) -> "RequestNode":
        return cls(request)


__all__ = ("RequestNode",)
