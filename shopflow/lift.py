"""
Lift — helpers for lifting values and calls into LazyCoroResult.

Re-exports from combinators.lift plus the boundary helper used wherever
raw I/O (database, HTTP) meets typed shop errors.

    from shopflow import lift as L

    lookup = L.guarded(lambda: session.get(ProductRow, 1), action="load product")
    result = await lookup   # Ok(row) | Error(PersistenceError)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Awaitable

from kungfu import LazyCoroResult

from combinators.lift import (
    pure,
    fail,
    catching_async,
)

from shopflow.errors import ShopError, PersistenceError

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Boundary helpers
# ═══════════════════════════════════════════════════════════════════════════════

def as_shop_error(action: str) -> Callable[[Exception], ShopError]:
    """
    Build an ``on_error`` mapper for ``catching_async``.

    Typed shop errors pass through untouched. Anything else is an
    infrastructure failure: it is logged with its traceback and replaced by
    a ``PersistenceError`` naming the action that failed.
    """
    def _convert(exc: Exception) -> ShopError:
        if isinstance(exc, ShopError):
            return exc
        logger.error("%s failed", action, exc_info=exc)
        return PersistenceError(f"could not {action}")
    return _convert


def guarded[T](
    fn: Callable[[], Awaitable[T]],
    *,
    action: str,
) -> LazyCoroResult[T, ShopError]:
    """catching_async with the shop error mapping applied."""
    return catching_async(fn, on_error=as_shop_error(action))


__all__ = (
    # From combinators.lift
    "pure",
    "fail",
    "catching_async",
    # Shop additions
    "as_shop_error",
    "guarded",
)
