"""
Saga — multi-step writes with compensation.

    from shopflow import saga as S

    saga = S.step(reserve, release).then(lambda r: S.step(charge(r), refund))
    result = await S.run(saga)
"""

from shopflow.saga._types import (
    SagaStep,
    SagaResult,
    SagaError,
    SagaExpr,
    Then,
)
from shopflow.saga._step import step, from_async
from shopflow.saga._run import run, run_compensators

__all__ = (
    "SagaStep",
    "SagaResult",
    "SagaError",
    "SagaExpr",
    "Then",
    "step",
    "from_async",
    "run",
    "run_compensators",
)
