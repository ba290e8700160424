"""
Saga step constructors.
"""

from __future__ import annotations

from collections.abc import Callable, Awaitable

from shopflow import lift as L
from shopflow._types import Compensator, Lazy
from shopflow.saga._types import SagaStep


def step[T, E](
    action: Lazy[T, E],
    compensate: Compensator[T] | None = None,
    *,
    label: str = "step",
) -> SagaStep[T, E]:
    """
    Create a compensated step from a lazy action.

        persist = S.step(
            L.guarded(lambda: orders.create(draft), action="persist order"),
            compensate=lambda order: orders.delete(order.id),
            label="persist order",
        )
    """
    return SagaStep(action=action, compensate=compensate, label=label)


def from_async[T, E](
    action: Callable[[], Awaitable[T]],
    on_error: Callable[[Exception], E],
    compensate: Compensator[T] | None = None,
    *,
    label: str = "step",
) -> SagaStep[T, E]:
    """Create a step from a plain coroutine function, mapping exceptions with ``on_error``."""
    return SagaStep(
        action=L.catching_async(action, on_error=on_error),
        compensate=compensate,
        label=label,
    )


__all__ = ("step", "from_async")
