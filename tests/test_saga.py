from kungfu import Ok, Error

from shopflow import lift as L
from shopflow import saga as S


class Boom(Exception):
    pass


def recording(log: list[str], name: str):
    async def compensate(value) -> None:
        log.append(f"undo {name}:{value}")
    return compensate


async def test_chain_returns_last_value():
    saga = (
        S.step(L.pure(1))
        .then(lambda a: S.step(L.pure(a + 1)))
        .then(lambda b: S.step(L.pure(b * 10)))
    )

    result = await S.run(saga)

    assert isinstance(result, Ok)
    assert result.value.value == 20
    assert result.value.steps_executed == 3


async def test_failure_compensates_in_reverse_order():
    log: list[str] = []
    saga = (
        S.step(L.pure("a"), recording(log, "first"))
        .then(lambda _: S.step(L.pure("b"), recording(log, "second")))
        .then(lambda _: S.step(L.fail("card declined")))
    )

    result = await S.run(saga)

    assert isinstance(result, Error)
    assert result.error.error == "card declined"
    assert result.error.step_failed == 3
    assert result.error.rollback_complete
    assert log == ["undo second:b", "undo first:a"]


async def test_failed_compensator_does_not_stop_rollback():
    log: list[str] = []

    async def broken(_value) -> None:
        raise Boom()

    saga = (
        S.step(L.pure("a"), recording(log, "first"))
        .then(lambda _: S.step(L.pure("b"), broken))
        .then(lambda _: S.from_async(_explode, on_error=str))
    )

    result = await S.run(saga)

    assert result.error.compensators_run == 1
    assert result.error.compensators_failed == 1
    assert not result.error.rollback_complete
    assert log == ["undo first:a"]


async def test_steps_after_failure_never_run():
    ran: list[str] = []

    async def later() -> str:
        ran.append("later")
        return "x"

    saga = S.step(L.fail("nope")).then(lambda _: S.from_async(later, on_error=str))

    result = await S.run(saga)

    assert result.error.step_failed == 1
    assert result.error.compensators_run == 0
    assert ran == []


async def _explode() -> str:
    raise Boom("late failure")
