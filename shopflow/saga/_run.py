"""
Saga execution with automatic rollback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from kungfu import Result, Ok, Error

from shopflow._types import Compensator
from shopflow.saga._types import SagaStep, SagaResult, SagaError, SagaExpr, Then

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Ledger — what ran and what can be undone
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True)
class _Ledger:
    compensators: list[tuple[str, Any, Compensator[Any]]] = field(default_factory=list)
    steps: int = 0


async def _run_step[T, E](saga_step: SagaStep[T, E], ledger: _Ledger) -> Result[T, E]:
    ledger.steps += 1
    result = await saga_step.action
    match result:
        case Ok(value):
            if saga_step.compensate is not None:
                ledger.compensators.append((saga_step.label, value, saga_step.compensate))
            return Ok(value)
        case Error(e):
            logger.warning("saga step %d (%s) failed: %r", ledger.steps, saga_step.label, e)
            return Error(e)


async def _execute(expr: SagaExpr[Any, Any], ledger: _Ledger) -> Result[Any, Any]:
    match expr:
        case SagaStep():
            return await _run_step(expr, ledger)
        case Then(inner, f):
            match await _execute(inner, ledger):
                case Ok(value):
                    return await _execute(f(value), ledger)
                case Error(e):
                    return Error(e)
    raise TypeError(f"not a saga expression: {expr!r}")


# ═══════════════════════════════════════════════════════════════════════════════
# run_compensators() — rollback
# ═══════════════════════════════════════════════════════════════════════════════


async def run_compensators(
    compensators: list[tuple[str, Any, Compensator[Any]]],
) -> tuple[int, int]:
    """
    Run compensators newest-first. Returns (run, failed).

    A failing compensator is logged and skipped; the rest still run.
    """
    comp_run = 0
    comp_failed = 0

    for label, value, compensate in reversed(compensators):
        try:
            await compensate(value)
            comp_run += 1
        except Exception:
            comp_failed += 1
            logger.exception("compensation for %s failed", label)

    return comp_run, comp_failed


# ═══════════════════════════════════════════════════════════════════════════════
# run() — execute a saga
# ═══════════════════════════════════════════════════════════════════════════════


async def run[T, E](saga: SagaExpr[T, E]) -> Result[SagaResult[T], SagaError[E]]:
    """
    Execute a step or a chain of any depth.

    On success the value of the last step is returned with bookkeeping.
    On failure every recorded compensator runs in reverse order and the
    original error is returned inside a SagaError.

        match await S.run(saga):
            case Ok(done):
                order = done.value
            case Error(failure):
                raise failure.error
    """
    ledger = _Ledger()

    match await _execute(saga, ledger):
        case Ok(value):
            return Ok(SagaResult(
                value=value,
                steps_executed=ledger.steps,
                compensators_recorded=len(ledger.compensators),
            ))
        case Error(error):
            comp_run, comp_failed = await run_compensators(ledger.compensators)
            if comp_failed:
                logger.error(
                    "saga rollback incomplete: %d of %d compensators failed",
                    comp_failed, comp_run + comp_failed,
                )
            return Error(SagaError(
                error=error,
                step_failed=ledger.steps,
                compensators_run=comp_run,
                compensators_failed=comp_failed,
                rollback_complete=comp_failed == 0,
            ))


__all__ = ("run", "run_compensators")
