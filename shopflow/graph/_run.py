"""
Graph runner — typed injection over nodnod.

Nodes are discovered from the target, independent branches run
concurrently on the event loop.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, cast
from collections.abc import Callable, Coroutine

from nodnod import Scope, Value, EventLoopAgent, Node

# ═══════════════════════════════════════════════════════════════════════════════
# TypedScope
# ═══════════════════════════════════════════════════════════════════════════════


class TypedScope:
    __slots__ = ("_scope",)

    def __init__(self, detail: str = "scope") -> None:
        self._scope = Scope(detail=detail)

    @property
    def inner(self) -> Scope:
        return self._scope

    def inject[T](self, typ: type[T], value: T) -> TypedScope:
        self._scope.push(Value(typ, value))
        return self

    def get[T](self, typ: type[T]) -> T:
        boxed = self._scope.get(typ)
        if boxed is None:
            raise KeyError(f"{typ.__name__} was not composed")
        return cast(T, boxed.value)

    async def __aenter__(self) -> TypedScope:
        await self._scope.__aenter__()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self._scope.__aexit__(*args)


def _build_agent(target: type[Any]) -> EventLoopAgent:
    return EventLoopAgent.build({cast(type[Node[Any, Any]], target)})


# ═══════════════════════════════════════════════════════════════════════════════
# Run — fluent awaitable builder
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class Run[T]:
    """
    One pending execution of ``target``.

        quote = await (
            G.run(QuoteNode)
            .inject(request)
            .inject_as(Catalog, catalog)
        )

    Exceptions raised by a node's ``__compose__`` propagate to the awaiter.
    """

    _target: type[T]
    _agent: EventLoopAgent | None = None
    _injections: tuple[tuple[type[Any], Any], ...] = ()

    def inject(self, value: object) -> Run[T]:
        """Inject under the value's runtime type."""
        return self.inject_as(cast(type[Any], type(value)), value)

    def inject_as[V](self, typ: type[V], value: V) -> Run[T]:
        """Inject under an explicit type, e.g. a protocol or a base class."""
        return Run(self._target, self._agent, (*self._injections, (typ, value)))

    def given(self, *values: object) -> Run[T]:
        run_ = self
        for value in values:
            run_ = run_.inject(value)
        return run_

    def __await__(self) -> Any:
        return self._execute().__await__()

    async def _execute(self) -> T:
        agent = self._agent or _build_agent(self._target)

        async with TypedScope(detail=self._target.__name__) as scope:
            for typ, value in self._injections:
                scope.inject(typ, value)

            run_method = cast(
                Callable[[Scope, dict[type[Any], Scope]], Coroutine[Any, Any, None]],
                getattr(agent, "run"),
            )
            await run_method(scope.inner, {})

            return scope.get(self._target)


def run[T](target: type[T]) -> Run[T]:
    return Run(_target=target)


async def compose[T](target: type[T], *inputs: object) -> T:
    """One-shot: ``await G.compose(QuoteNode, request, catalog)``."""
    return await run(target).given(*inputs)


# ═══════════════════════════════════════════════════════════════════════════════
# Compiled — build the agent once, run many times
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class Compiled[T]:
    _target: type[T]
    _agent: EventLoopAgent

    def run(self) -> Run[T]:
        return Run(self._target, self._agent)

    async def __call__(self, *inputs: object) -> T:
        return await self.run().given(*inputs)


def graph[T](target: type[T]) -> Compiled[T]:
    """Pre-compile ``target``'s graph; the result is safe to share across requests."""
    return Compiled(target, _build_agent(target))


__all__ = ("TypedScope", "Run", "run", "compose", "Compiled", "graph")
