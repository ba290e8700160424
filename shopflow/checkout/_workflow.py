"""
Checkout workflow — validate, price, persist, settle.

    workflow = CheckoutWorkflow(settings, orders, catalog, estimator, inventory, cart, gateway)

    match await workflow.checkout(user_id, draft, urls):
        case Ok(CashPlaced(order)): ...
        case Ok(GatewayPending(order, approval_url)): ...
        case Error(e): ...          # ShopError, mapped to HTTP by the API

Nothing is written before pricing succeeds. Once the order row exists,
every later failure deletes it again through the saga compensator.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from kungfu import Ok, Error, Result

import combinators as C

from shopflow import graph as G
from shopflow import lift as L
from shopflow import saga as S
from shopflow._types import Lazy
from shopflow.cart import CartService
from shopflow.catalog import Catalog
from shopflow.checkout._validate import CheckoutDraft, validate_checkout
from shopflow.checkout.nodes import QuoteNode, ShippingFeeNode
from shopflow.config import Settings
from shopflow.domain import (
    CallbackOutcome,
    CallbackUrls,
    CashPlaced,
    CheckoutOutcome,
    CheckoutQuote,
    CheckoutRequest,
    GatewayPending,
    NewOrder,
    Order,
    PaymentMethod,
    PaymentStatus,
    ShippingQuery,
    ShippingQuote,
    StockDecrement,
)
from shopflow.errors import (
    PaymentInitiationError,
    PersistenceError,
    ShopError,
    ValidationError,
)
from shopflow.inventory import InventoryUpdater
from shopflow.orders import OrderRepository
from shopflow.payments import PaymentGateway, PaymentIntent, to_settlement
from shopflow.shipping import ShippingEstimator

logger = logging.getLogger(__name__)

_pricing = G.graph(QuoteNode)
_fee_quote = G.graph(ShippingFeeNode)


class CheckoutWorkflow:
    def __init__(
        self,
        settings: Settings,
        orders: OrderRepository,
        catalog: Catalog,
        estimator: ShippingEstimator,
        inventory: InventoryUpdater,
        cart: CartService,
        gateway: PaymentGateway,
    ) -> None:
        self._settings = settings
        self._orders = orders
        self._catalog = catalog
        self._estimator = estimator
        self._inventory = inventory
        self._cart = cart
        self._gateway = gateway

    # ═══════════════════════════════════════════════════════════════════════════
    # Shipping quote
    # ═══════════════════════════════════════════════════════════════════════════

    async def quote_shipping(
        self,
        to_address: object,
        is_return_leg: bool = False,
    ) -> Result[ShippingQuote, ShopError]:
        if not isinstance(to_address, str) or not to_address.strip():
            return Error(ValidationError("Destination address is required."))

        query = ShippingQuery(self._estimator.origin, to_address.strip(), is_return_leg)

        async def _run() -> ShippingQuote:
            node = await (
                _fee_quote.run()
                .inject(query)
                .inject_as(ShippingEstimator, self._estimator)
            )
            return node.quote

        return await L.guarded(_run, action="quote shipping")

    # ═══════════════════════════════════════════════════════════════════════════
    # Checkout
    # ═══════════════════════════════════════════════════════════════════════════

    async def checkout(
        self,
        user_id: str,
        draft: CheckoutDraft | Mapping[str, Any],
        urls: CallbackUrls,
    ) -> Result[CheckoutOutcome, ShopError]:
        match validate_checkout(user_id, draft):
            case Error(e):
                logger.info("checkout for user %s rejected: %s", user_id, e)
                return Error(e)
            case Ok(request):
                pass

        match await self._price(request):
            case Error(e):
                logger.info("checkout for user %s not priced: %s", user_id, e)
                return Error(e)
            case Ok(quote):
                pass

        saga = (
            S.step(
                L.guarded(
                    lambda: self._orders.create(NewOrder.from_quote(request, quote)),
                    action="persist order",
                ),
                compensate=self._discard,
                label="persist order",
            )
            .then(lambda order: S.step(self._prune_cart(order), label="prune cart"))
            .then(lambda order: S.step(self._settle(order, urls), label="settle payment"))
        )

        match await S.run(saga):
            case Ok(done):
                return Ok(done.value)
            case Error(failure):
                if not failure.rollback_complete:
                    logger.error("checkout rollback for user %s left data behind", user_id)
                return Error(failure.error)

    def _price(self, request: CheckoutRequest) -> Lazy[CheckoutQuote, ShopError]:
        query = ShippingQuery(self._estimator.origin, request.to_address, request.is_return)

        async def _run() -> CheckoutQuote:
            node = await (
                _pricing.run()
                .inject(request)
                .inject(query)
                .inject_as(Catalog, self._catalog)
                .inject_as(ShippingEstimator, self._estimator)
            )
            return node.quote

        return L.guarded(_run, action="price checkout")

    async def _discard(self, order: Order) -> None:
        if await self._orders.delete(order.id):
            logger.info("order %s rolled back", order.id)
        else:
            logger.warning("order %s was already gone during rollback", order.id)

    def _prune_cart(self, order: Order) -> Lazy[Order, ShopError]:
        prune = C.tap_err(
            L.catching_async(
                lambda: self._cart.prune(order.user_id, {item.product_id for item in order.items}),
                on_error=lambda e: e,
            ),
            effect=lambda e: logger.warning("cart of user %s not pruned: %s", order.user_id, e),
        )
        return C.recover(prune, default=0).map(lambda _: order)

    def _settle(self, order: Order, urls: CallbackUrls) -> Lazy[CheckoutOutcome, ShopError]:
        match order.payment.method:
            case PaymentMethod.CASH:
                return L.guarded(lambda: self._place_cash(order), action="place cash order")
            case PaymentMethod.EXTERNAL_GATEWAY:
                return self._open_gateway(order, urls)

    async def _place_cash(self, order: Order) -> CheckoutOutcome:
        report = await self._inventory.apply_decrements(order.decrements())
        logger.info(
            "cash order %s placed: %d decrement(s) applied, %d failed",
            order.id, report.applied_count, report.failed_count,
        )
        return CashPlaced(order)

    def _open_gateway(self, order: Order, urls: CallbackUrls) -> Lazy[CheckoutOutcome, ShopError]:
        paypal = self._settings.paypal
        amount = to_settlement(order.total_price, paypal.exchange_rate)

        def _initiation_failed(exc: Exception) -> ShopError:
            logger.error("payment intent for order %s not opened", order.id, exc_info=exc)
            reason = exc.message if isinstance(exc, ShopError) else "Unexpected payment provider failure."
            return PaymentInitiationError(reason)

        open_intent = L.catching_async(
            lambda: self._gateway.open_intent(
                amount,
                paypal.currency,
                f"Payment for order #{order.id}",
                order.id,
                urls.success,
                urls.cancel,
            ),
            on_error=_initiation_failed,
        )

        def attach(intent: PaymentIntent) -> Lazy[CheckoutOutcome, ShopError]:
            async def _attach() -> CheckoutOutcome:
                updated = await self._orders.attach_intent(order.id, intent.intent_id)
                if updated is None:
                    raise PersistenceError(f"order {order.id} left Pending before its intent was stored")
                logger.info("order %s awaits payment of %s %s", order.id, amount, paypal.currency)
                return GatewayPending(updated, intent.approval_url)

            return L.guarded(_attach, action=f"attach intent to order {order.id}")

        return open_intent.then(attach)

    # ═══════════════════════════════════════════════════════════════════════════
    # Gateway callbacks
    # ═══════════════════════════════════════════════════════════════════════════

    async def confirm_gateway_payment(self, order_id: str, token: str | None) -> CallbackOutcome:
        """
        Capture an approved payment and settle the order.

        Safe to repeat: an order that already left Pending/Pending is
        reported as ALREADY_PROCESSED without touching the gateway.
        """
        order: Order | None = None
        try:
            order = await self._orders.get(order_id)
            if order is None:
                logger.warning("payment callback for unknown order %s", order_id)
                return CallbackOutcome.NOT_FOUND
            if not order.awaiting_payment:
                logger.warning(
                    "payment callback for order %s in state %s/%s ignored",
                    order_id, order.status.value, order.payment.status.value,
                )
                return CallbackOutcome.ALREADY_PROCESSED

            intent_id = order.payment.transaction_id
            if intent_id is None or (token and token != intent_id):
                logger.warning("payment callback for order %s carries a foreign token", order_id)
                return CallbackOutcome.INVALID

            capture = await self._gateway.capture_intent(intent_id)
            if not capture.completed:
                logger.warning("capture of order %s ended as %s", order_id, capture.status)
                await self._orders.cancel_pending(order_id, PaymentStatus.FAILED)
                return CallbackOutcome.DECLINED

            settled = await self._orders.settle_capture(order_id, capture.transaction_id or intent_id)
            if settled is None:
                logger.warning("order %s was settled by a concurrent callback", order_id)
                return CallbackOutcome.ALREADY_PROCESSED

            logger.info("order %s paid, transaction %s", order_id, settled.payment.transaction_id)
        except Exception:
            logger.exception("payment callback for order %s failed", order_id)
            if order is not None:
                await self._fail_quietly(order_id)
            return CallbackOutcome.FAILED

        # The money is captured; stock problems are logged, never reported.
        try:
            await self._inventory.apply_decrements(await self._owned_decrements(settled))
        except Exception:
            logger.exception("stock for paid order %s not decremented", order_id)
        return CallbackOutcome.CAPTURED

    async def _owned_decrements(self, order: Order) -> list[StockDecrement]:
        """Re-read the owning product of every variation; orphaned lines are dropped."""
        decrements = []
        for item in order.items:
            owner = await self._catalog.owner_of(item.variation_id)
            if owner is None:
                logger.warning("variation %s of order %s no longer exists", item.variation_id, order.id)
                continue
            decrements.append(StockDecrement(owner, item.variation_id, item.quantity))
        return decrements

    async def _fail_quietly(self, order_id: str) -> None:
        try:
            await self._orders.cancel_pending(order_id, PaymentStatus.FAILED)
        except Exception:
            logger.exception("order %s could not be marked failed", order_id)

    async def cancel_gateway_payment(self, order_id: str) -> bool:
        try:
            cancelled = await self._orders.cancel_pending(order_id, PaymentStatus.CANCELLED)
        except Exception:
            logger.exception("cancelling order %s failed", order_id)
            return False
        if cancelled is None:
            logger.warning("cancel callback for order %s ignored: not pending", order_id)
            return False
        logger.info("order %s cancelled by the customer", order_id)
        return True


__all__ = ("CheckoutWorkflow",)
