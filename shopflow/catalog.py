"""
Catalog lookup — resolve checkout lines to product variations.

Read-only. Every line of a checkout is resolved concurrently and every
failure is reported, not just the first one:

    result = await catalog.resolve_all(request.lines)
    match result:
        case Ok(items): ...
        case Error(errors): errors.errors  # every bad line
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from kungfu import Ok, Error, Result, LazyCoroResult
from sqlalchemy import select

import combinators as C

from shopflow import lift as L
from shopflow._types import Lazy
from shopflow.db import MAX_DB_INT, ProductTable, SessionFactory, VariationTable
from shopflow.domain import (
    CheckoutLine,
    Product,
    ProductImage,
    ResolvedItem,
    Variation,
)
from shopflow.errors import (
    CatalogError,
    CatalogErrors,
    InsufficientStock,
    ProductNotFound,
    VariationNotFound,
)

logger = logging.getLogger(__name__)


class Catalog:
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session = session_factory

    # ───────────────────────────────────────────────────────────────────────────
    # Lookup
    # ───────────────────────────────────────────────────────────────────────────

    def resolve(
        self,
        product_id: int,
        size: str,
        color: str,
        quantity: int,
    ) -> Lazy[ResolvedItem, CatalogError]:
        """
        Match one line against the catalog.

        Sizes and colors are compared exactly (case-sensitive) in Python so
        the database collation cannot loosen the match. Database failures
        are not catalog errors: they raise ``PersistenceError``. Ids outside
        the INTEGER column range are never stored, so they are not found.
        """
        async def _run() -> Result[ResolvedItem, CatalogError]:
            if not 0 < product_id <= MAX_DB_INT:
                return Error(ProductNotFound(product_id))
            row = await self._load(product_id)
            if row is None:
                return Error(ProductNotFound(product_id))

            variation = next(
                (v for v in row.variations if v.size == size and v.color == color),
                None,
            )
            if variation is None:
                return Error(VariationNotFound(product_id, row.name, size, color))

            if variation.amount < quantity:
                return Error(InsufficientStock(
                    product_id, row.name, size, color,
                    available=variation.amount,
                    requested=quantity,
                ))

            return Ok(ResolvedItem(
                product=_product(row),
                variation=_variation(variation),
                quantity=quantity,
            ))

        return LazyCoroResult(_run)

    async def resolve_all(
        self,
        lines: Sequence[CheckoutLine],
    ) -> Result[list[ResolvedItem], CatalogErrors]:
        """Resolve every line concurrently, aggregating all failures."""
        result = await C.validate([
            self.resolve(line.product_id, line.size, line.color, line.quantity)
            for line in lines
        ])
        match result:
            case Ok(items):
                return Ok(items)
            case Error(errors):
                logger.info("catalog rejected %d of %d lines", len(errors), len(lines))
                return Error(CatalogErrors(errors))

    async def owner_of(self, variation_id: str) -> int | None:
        """Product id owning a variation, or None if the variation is gone."""
        async with self._session() as session:
            return (
                await session.execute(
                    select(VariationTable.product_id).where(VariationTable.id == variation_id)
                )
            ).scalar_one_or_none()

    # ───────────────────────────────────────────────────────────────────────────
    # Seeding
    # ───────────────────────────────────────────────────────────────────────────

    async def add_product(
        self,
        name: str,
        price: int,
        variations: Sequence[tuple[str, str, int]],
        images: Sequence[ProductImage] = (),
    ) -> tuple[Product, list[Variation]]:
        """Insert a product with ``(size, color, amount)`` variations."""
        async with self._session() as session:
            row = ProductTable(
                name=name,
                price=price,
                images=[image.to_dict() for image in images],
                variations=[
                    VariationTable(size=size, color=color, amount=amount)
                    for size, color, amount in variations
                ],
            )
            session.add(row)
            await session.commit()
            return _product(row), [_variation(v) for v in row.variations]

    # ───────────────────────────────────────────────────────────────────────────
    # Internals
    # ───────────────────────────────────────────────────────────────────────────

    async def _load(self, product_id: int) -> ProductTable | None:
        result = await L.guarded(
            lambda: self._fetch(product_id),
            action=f"load product {product_id}",
        )
        match result:
            case Ok(row):
                return row
            case Error(e):
                raise e

    async def _fetch(self, product_id: int) -> ProductTable | None:
        async with self._session() as session:
            return (
                await session.execute(
                    select(ProductTable).where(ProductTable.id == product_id)
                )
            ).scalar_one_or_none()


def _product(row: ProductTable) -> Product:
    return Product(
        product_id=row.id,
        name=row.name,
        price=row.price,
        images=tuple(ProductImage.from_dict(raw) for raw in row.images or ()),
    )


def _variation(row: VariationTable) -> Variation:
    return Variation(
        variation_id=row.id,
        product_id=row.product_id,
        size=row.size,
        color=row.color,
        amount=row.amount,
    )


__all__ = ("Catalog",)
