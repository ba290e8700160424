"""
Saga types — steps, chains and outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass
from collections.abc import Callable

from shopflow._types import Compensator, Lazy

# ═══════════════════════════════════════════════════════════════════════════════
# SagaStep
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SagaStep[T, E]:
    """
    One forward action plus the undo for it.

    The compensator is recorded only once the action succeeded. A step
    without a compensator has nothing to undo.
    """

    action: Lazy[T, E]
    compensate: Compensator[T] | None = None
    label: str = "step"

    def then[U, E2](self, f: Callable[[T], SagaExpr[U, E2]]) -> Then[T, U, E, E2]:
        return Then(self, f)


# ═══════════════════════════════════════════════════════════════════════════════
# Then — sequential composition
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Then[T, U, E, E2]:
    """
    Run ``inner``, feed its value to ``f``, run whatever ``f`` returns.

    Both sides may themselves be chains, so sagas nest to any depth.
    """

    inner: SagaExpr[T, E]
    f: Callable[[T], SagaExpr[U, E2]]

    def then[V, E3](self, g: Callable[[U], SagaExpr[V, E3]]) -> Then[U, V, E | E2, E3]:
        return Then(self, g)


type SagaExpr[T, E] = SagaStep[T, E] | Then[object, T, object, E]

# ═══════════════════════════════════════════════════════════════════════════════
# Outcomes
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SagaResult[T]:
    value: T
    steps_executed: int
    compensators_recorded: int


@dataclass(frozen=True, slots=True)
class SagaError[E]:
    """The failing step's error plus how far the rollback got."""

    error: E
    step_failed: int
    compensators_run: int
    compensators_failed: int
    rollback_complete: bool


__all__ = (
    "SagaStep",
    "Then",
    "SagaExpr",
    "SagaResult",
    "SagaError",
)
