"""
Graph — dependency graphs of async nodes.

    from shopflow import graph as G

    @G.node
    class Subtotal:
        def __init__(self, value: int) -> None:
            self.value = value

        @classmethod
        def __compose__(cls, request: RequestNode) -> "Subtotal":
            return cls(len(request.data.lines))

    subtotal = await G.compose(Subtotal, request)
"""

from nodnod import scalar_node as node

from shopflow.graph._run import (
    TypedScope,
    Run,
    run,
    compose,
    Compiled,
    graph,
)

__all__ = (
    "node",
    "TypedScope",
    "Run",
    "run",
    "compose",
    "Compiled",
    "graph",
)
