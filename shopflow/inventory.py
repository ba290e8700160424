"""
Inventory updater — conditional stock decrements.

Each decrement is a single compare-and-set statement:

    UPDATE product_variations
       SET amount = amount - :q
     WHERE id = :variation AND product_id = :product AND amount >= :q

so concurrent checkouts can never push stock below zero. A decrement that
matches no row means the stock vanished after validation; the order is
already committed at that point, so the conflict is logged, not raised.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from kungfu import Ok, Error, LazyCoroResult
from sqlalchemy import update

import combinators as C

from shopflow import lift as L
from shopflow.db import SessionFactory, VariationTable
from shopflow.domain import DecrementReport, StockDecrement

logger = logging.getLogger(__name__)


class StockConflict(Exception):
    def __init__(self, item: StockDecrement) -> None:
        super().__init__(
            f"variation {item.variation_id} of product {item.product_id} "
            f"has less than {item.quantity} in stock"
        )
        self.item = item


class InventoryUpdater:
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session = session_factory

    async def apply_decrements(self, items: Sequence[StockDecrement]) -> DecrementReport:
        """Apply every well-formed decrement. Never raises."""
        valid = [item for item in items if item.is_well_formed()]
        skipped = len(items) - len(valid)
        if skipped:
            logger.warning("skipping %d malformed stock decrement(s)", skipped)
        if not valid:
            return DecrementReport(applied_count=0, skipped_count=skipped)

        outcome = await C.partition([self._decrement(item) for item in valid])
        match outcome:
            case Ok((applied, failed)):
                for failure in failed:
                    logger.warning("stock decrement not applied: %s", failure)
                return DecrementReport(
                    applied_count=len(applied),
                    skipped_count=skipped,
                    failed_count=len(failed),
                )
            case Error(e):
                # partition never fails; kept for exhaustiveness
                logger.error("stock decrement batch failed: %s", e)
                return DecrementReport(applied_count=0, skipped_count=skipped, failed_count=len(valid))

    def _decrement(self, item: StockDecrement) -> LazyCoroResult[StockDecrement, Exception]:
        async def _apply() -> StockDecrement:
            async with self._session() as session:
                result = await session.execute(
                    update(VariationTable)
                    .where(
                        VariationTable.id == item.variation_id,
                        VariationTable.product_id == item.product_id,
                        VariationTable.amount >= item.quantity,
                    )
                    .values(amount=VariationTable.amount - item.quantity)
                )
                await session.commit()
            if result.rowcount != 1:
                raise StockConflict(item)
            return item

        return L.catching_async(_apply, on_error=lambda e: e)


__all__ = ("InventoryUpdater", "StockConflict")
