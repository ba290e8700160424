"""
Items — every checkout line resolved against the catalog.

The node keeps the Result instead of raising so the join node decides
which failure wins when the shipping branch fails as well.
"""

from kungfu import Result

from shopflow import graph as G
from shopflow.catalog import Catalog
from shopflow.checkout.nodes._input import RequestNode
from shopflow.domain import ResolvedItem
from shopflow.errors import CatalogErrors


@G.node
class LineItemsNode:
    def __init__(self, result: Result[list[ResolvedItem], CatalogErrors]) -> None:
        self.result = result

    @classmethod
    async def __compose__(cls, request: RequestNode, catalog: Catalog) -> "LineItemsNode":
        return cls(await catalog.resolve_all(request.data.lines))


__all__ = ("LineItemsNode",)
