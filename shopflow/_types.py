"""
Core types for shopflow.

Shop-wide type aliases over kungfu.
"""

from __future__ import annotations

from collections.abc import Callable, Awaitable

from kungfu import LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Lazy Computation Aliases
# ═══════════════════════════════════════════════════════════════════════════════

type Lazy[T, E] = LazyCoroResult[T, E]
"""Lazy async computation that may fail."""

# ═══════════════════════════════════════════════════════════════════════════════
# Money
# ═══════════════════════════════════════════════════════════════════════════════

type Money = int
"""Amount in the shop currency (VND). VND has no minor unit, so this is exact."""

# ═══════════════════════════════════════════════════════════════════════════════
# Compensation
# ═══════════════════════════════════════════════════════════════════════════════

type Compensator[T] = Callable[[T], Awaitable[None]]
"""Undo action receiving the value produced by the step it compensates."""

# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "Lazy",
    "Money",
    "Compensator",
)
