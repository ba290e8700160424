"""
Cart — the slice of the cart service checkout needs.
"""

from __future__ import annotations

import logging
from collections.abc import Collection

from sqlalchemy import delete

from shopflow.db import CartItemTable, SessionFactory

logger = logging.getLogger(__name__)


class CartService:
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session = session_factory

    async def prune(self, user_id: str, product_ids: Collection[int]) -> int:
        """Drop every cart row of ``user_id`` for the given products."""
        if not product_ids:
            return 0
        async with self._session() as session:
            result = await session.execute(
                delete(CartItemTable).where(
                    CartItemTable.user_id == user_id,
                    CartItemTable.product_id.in_(set(product_ids)),
                )
            )
            await session.commit()
        logger.debug("pruned %d cart rows for user %s", result.rowcount, user_id)
        return result.rowcount


__all__ = ("CartService",)
