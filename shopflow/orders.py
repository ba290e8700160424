"""
Order repository — persistence for orders and their state transitions.

Every state transition is a conditional UPDATE guarded on the current
status, so a repeated or late callback can never move an order out of a
terminal state.
"""

from __future__ import annotations

import logging

from sqlalchemy import update

from shopflow.db import OrderItemTable, OrderTable, SessionFactory, new_id, utcnow
from shopflow.domain import (
    LineItem,
    NewOrder,
    Order,
    OrderStatus,
    Payment,
    PaymentMethod,
    PaymentStatus,
    ProductImage,
    ShippingAddress,
)

logger = logging.getLogger(__name__)


class OrderRepository:
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session = session_factory

    async def create(self, new: NewOrder) -> Order:
        """Insert a Pending order with Pending payment."""
        async with self._session() as session:
            row = OrderTable(
                id=new_id(),
                user_id=new.user_id,
                total_price=new.total_price,
                status=OrderStatus.PENDING.value,
                note=new.note,
                payment_method=new.payment_method.value,
                payment_status=PaymentStatus.PENDING.value,
                transaction_id=None,
                recipient=new.shipping.recipient,
                phone=new.shipping.phone,
                address=new.shipping.address,
                distance_km=new.shipping.distance_km,
                shipping_fee=new.shipping.fee,
                items=[
                    OrderItemTable(
                        position=position,
                        product_id=item.product_id,
                        variation_id=item.variation_id,
                        name=item.name,
                        unit_price=item.unit_price,
                        quantity=item.quantity,
                        size=item.size,
                        color=item.color,
                        images=[image.to_dict() for image in item.images],
                    )
                    for position, item in enumerate(new.items)
                ],
            )
            session.add(row)
            await session.commit()
            logger.info("order %s persisted (total %d)", row.id, row.total_price)
            return _order(row)

    async def get(self, order_id: str) -> Order | None:
        async with self._session() as session:
            row = await session.get(OrderTable, order_id)
            return _order(row) if row is not None else None

    async def delete(self, order_id: str) -> bool:
        async with self._session() as session:
            row = await session.get(OrderTable, order_id)
            if row is None:
                return False
            await session.delete(row)
            await session.commit()
        logger.info("order %s deleted", order_id)
        return True

    # ───────────────────────────────────────────────────────────────────────────
    # Transitions
    # ───────────────────────────────────────────────────────────────────────────

    async def attach_intent(self, order_id: str, intent_id: str) -> Order | None:
        """Record the gateway intent on a still-pending order."""
        return await self._transition(
            order_id,
            require_status=OrderStatus.PENDING,
            transaction_id=intent_id,
        )

    async def settle_capture(self, order_id: str, transaction_id: str) -> Order | None:
        """Pending/Pending -> Processing/Completed. None if someone got there first."""
        return await self._transition(
            order_id,
            require_status=OrderStatus.PENDING,
            require_payment=PaymentStatus.PENDING,
            status=OrderStatus.PROCESSING,
            payment_status=PaymentStatus.COMPLETED,
            transaction_id=transaction_id,
        )

    async def cancel_pending(
        self,
        order_id: str,
        payment_status: PaymentStatus,
    ) -> Order | None:
        """Pending -> Cancelled with the given terminal payment status."""
        return await self._transition(
            order_id,
            require_status=OrderStatus.PENDING,
            require_payment=PaymentStatus.PENDING,
            status=OrderStatus.CANCELLED,
            payment_status=payment_status,
        )

    async def _transition(
        self,
        order_id: str,
        *,
        require_status: OrderStatus | None = None,
        require_payment: PaymentStatus | None = None,
        status: OrderStatus | None = None,
        payment_status: PaymentStatus | None = None,
        transaction_id: str | None = None,
    ) -> Order | None:
        values: dict[str, object] = {"updated_at": utcnow()}
        if status is not None:
            values["status"] = status.value
        if payment_status is not None:
            values["payment_status"] = payment_status.value
        if transaction_id is not None:
            values["transaction_id"] = transaction_id

        stmt = update(OrderTable).where(OrderTable.id == order_id)
        if require_status is not None:
            stmt = stmt.where(OrderTable.status == require_status.value)
        if require_payment is not None:
            stmt = stmt.where(OrderTable.payment_status == require_payment.value)

        async with self._session() as session:
            result = await session.execute(
                stmt.values(**values).execution_options(synchronize_session=False)
            )
            await session.commit()
            if result.rowcount != 1:
                return None
            row = await session.get(OrderTable, order_id, populate_existing=True)
            return _order(row) if row is not None else None


def _order(row: OrderTable) -> Order:
    return Order(
        id=row.id,
        user_id=row.user_id,
        items=tuple(
            LineItem(
                product_id=item.product_id,
                variation_id=item.variation_id,
                name=item.name,
                unit_price=item.unit_price,
                quantity=item.quantity,
                size=item.size,
                color=item.color,
                images=tuple(ProductImage.from_dict(raw) for raw in item.images or ()),
            )
            for item in row.items
        ),
        total_price=row.total_price,
        status=OrderStatus(row.status),
        payment=Payment(
            method=PaymentMethod(row.payment_method),
            status=PaymentStatus(row.payment_status),
            transaction_id=row.transaction_id,
        ),
        shipping=ShippingAddress(
            recipient=row.recipient,
            phone=row.phone,
            address=row.address,
            distance_km=row.distance_km,
            fee=row.shipping_fee,
        ),
        note=row.note,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


__all__ = ("OrderRepository",)
