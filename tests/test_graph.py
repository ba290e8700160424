import asyncio

import pytest

from shopflow import graph as G


class Ledger:
    def __init__(self) -> None:
        self.started: list[str] = []


class Price:
    def __init__(self, amount: int) -> None:
        self.amount = amount


@G.node
class Left:
    def __init__(self, value: int) -> None:
        self.value = value

    @classmethod
    async def __compose__(cls, price: Price, ledger: Ledger) -> "Left":
        ledger.started.append("left")
        await asyncio.sleep(0)
        return cls(price.amount * 2)


@G.node
class Right:
    def __init__(self, value: int) -> None:
        self.value = value

    @classmethod
    async def __compose__(cls, price: Price, ledger: Ledger) -> "Right":
        ledger.started.append("right")
        await asyncio.sleep(0)
        return cls(price.amount + 1)


@G.node
class Join:
    def __init__(self, value: int) -> None:
        self.value = value

    @classmethod
    def __compose__(cls, left: Left, right: Right) -> "Join":
        return cls(left.value + right.value)


@G.node
class Exploding:
    def __init__(self) -> None:
        pass

    @classmethod
    def __compose__(cls, price: Price) -> "Exploding":
        raise ValueError(f"bad price {price.amount}")


async def test_compose_runs_both_branches():
    ledger = Ledger()

    joined = await G.compose(Join, Price(10), ledger)

    assert joined.value == 31
    assert sorted(ledger.started) == ["left", "right"]


async def test_compiled_graph_is_reusable():
    compiled = G.graph(Join)

    first = await compiled(Price(1), Ledger())
    second = await compiled.run().inject(Price(2)).inject_as(Ledger, Ledger())

    assert (first.value, second.value) == (4, 7)


async def test_node_exception_reaches_the_caller():
    with pytest.raises(ValueError, match="bad price 3"):
        await G.compose(Exploding, Price(3))
