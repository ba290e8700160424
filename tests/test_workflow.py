import logging
from decimal import Decimal

import pytest
from kungfu import Ok, Error

from shopflow.checkout import CheckoutDraft
from shopflow.db import MAX_DB_INT
from shopflow.domain import (
    CallbackOutcome,
    CashPlaced,
    GatewayPending,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from shopflow.errors import (
    AddressUnresolvable,
    CatalogErrors,
    IntentCreationFailed,
    PaymentInitiationError,
    PersistenceError,
    ValidationError,
)

from conftest import (
    URLS,
    add_to_cart,
    cart_products,
    draft,
    force_status,
    item,
    order_count,
    stock_of,
)


def medium(shirt, quantity: int = 2) -> dict:
    return item(shirt.product_id, quantity, "M", "White")


async def place_gateway_order(workflow, shirt):
    result = await workflow.checkout("alice", draft(medium(shirt), method="ExternalGateway"), URLS)
    assert isinstance(result, Ok), result
    return result.value.order


# ═══════════════════════════════════════════════════════════════════════════════
# Cash checkout
# ═══════════════════════════════════════════════════════════════════════════════

async def test_cash_checkout_places_order_and_decrements_stock(workflow, database, shirt):
    result = await workflow.checkout("alice", draft(medium(shirt)), URLS)

    match result:
        case Ok(CashPlaced(order)):
            assert order.total_price == 215_000
            assert order.shipping.fee == 15_000
            assert order.recomputed_total == order.total_price
            assert order.status is OrderStatus.PENDING
            assert order.payment.status is PaymentStatus.PENDING
            assert order.payment.method is PaymentMethod.CASH
            assert order.items[0].name == "Linen shirt"
            assert order.items[0].unit_price == 100_000
        case other:
            raise AssertionError(f"unexpected {other!r}")

    assert await stock_of(database, shirt.medium.variation_id) == 8


async def test_insufficient_stock_persists_nothing(workflow, database, shirt):
    result = await workflow.checkout("alice", draft(medium(shirt, quantity=11)), URLS)

    assert isinstance(result, Error)
    assert isinstance(result.error, CatalogErrors)
    assert result.error.status == 409
    assert await order_count(database) == 0
    assert await stock_of(database, shirt.medium.variation_id) == 10


async def test_validation_reports_every_problem(workflow, database):
    bad = draft(
        item("7", quantity=0, size="", color="Red"),
        method="Bitcoin",
        customer_name="  ",
    )

    result = await workflow.checkout("alice", bad, URLS)

    assert isinstance(result.error, ValidationError)
    assert result.error.status == 400
    assert len(result.error.details) == 5
    assert await order_count(database) == 0


async def test_catalog_error_wins_over_shipping_error(workflow, routing, shirt):
    routing.unresolvable.add("nowhere")
    bad_item = item(shirt.product_id + 100)

    result = await workflow.checkout("alice", draft(bad_item, to_address="nowhere"), URLS)

    assert isinstance(result.error, CatalogErrors)
    assert result.error.status == 404


async def test_unresolvable_address_rejects_checkout(workflow, routing, database, shirt):
    routing.unresolvable.add("nowhere")

    result = await workflow.checkout("alice", draft(medium(shirt), to_address="nowhere"), URLS)

    assert isinstance(result.error, AddressUnresolvable)
    assert await order_count(database) == 0


async def test_checkout_prunes_ordered_products_from_cart(workflow, database, catalog, shirt):
    other, _ = await catalog.add_product("Cap", 50_000, [("OS", "Black", 3)])
    await add_to_cart(database, "alice", shirt.product_id, "M", "White")
    await add_to_cart(database, "alice", other.product_id, "OS", "Black")
    await add_to_cart(database, "bob", shirt.product_id, "M", "White")

    await workflow.checkout("alice", draft(medium(shirt)), URLS)

    assert await cart_products(database, "alice") == [other.product_id]
    assert await cart_products(database, "bob") == [shirt.product_id]


async def test_cart_failure_does_not_block_checkout(workflow, cart, database, shirt, monkeypatch):
    async def broken_prune(user_id, product_ids):
        raise RuntimeError("cart store offline")

    monkeypatch.setattr(cart, "prune", broken_prune)

    result = await workflow.checkout("alice", draft(medium(shirt)), URLS)

    assert isinstance(result, Ok)
    assert isinstance(result.value, CashPlaced)
    assert await stock_of(database, shirt.medium.variation_id) == 8


async def test_repeated_lines_share_one_stock_check(workflow, database, shirt):
    # two lines of 1 against a stock of 1
    large = item(shirt.product_id, 1, "L", "White")

    result = await workflow.checkout("alice", draft(large, large), URLS)

    assert isinstance(result.error, CatalogErrors)
    assert result.error.status == 409
    assert await order_count(database) == 0
    assert await stock_of(database, shirt.large.variation_id) == 1


async def test_repeated_lines_become_one_order_line(workflow, database, shirt):
    result = await workflow.checkout("alice", draft(medium(shirt), medium(shirt)), URLS)

    order = result.value.order
    assert [(line.variation_id, line.quantity) for line in order.items] == [(shirt.medium.variation_id, 4)]
    assert order.total_price == 415_000
    assert await stock_of(database, shirt.medium.variation_id) == 6


@pytest.mark.parametrize("product_id", [0, -1, MAX_DB_INT + 1])
async def test_out_of_range_product_is_not_found(workflow, database, product_id):
    result = await workflow.checkout("alice", draft(item(product_id)), URLS)

    assert isinstance(result.error, CatalogErrors)
    assert result.error.status == 404
    assert await order_count(database) == 0


async def test_total_beyond_storage_range_is_rejected(workflow, catalog, database):
    bullion, (bar,) = await catalog.add_product("Gold bar", 10**15, [("OS", "Gold", 10**5)])

    result = await workflow.checkout("alice", draft(item(bullion.product_id, 10**5, "OS", "Gold")), URLS)

    assert isinstance(result.error, ValidationError)
    assert result.error.status == 400
    assert await order_count(database) == 0
    assert await stock_of(database, bar.variation_id) == 10**5


async def test_checkout_accepts_a_parsed_draft(workflow, shirt):
    parsed = CheckoutDraft.model_validate(draft(medium(shirt), method="Paypal"))

    result = await workflow.checkout("alice", parsed, URLS)

    assert isinstance(result.value, GatewayPending)
    assert result.value.order.payment.method is PaymentMethod.EXTERNAL_GATEWAY


# ═══════════════════════════════════════════════════════════════════════════════
# Gateway checkout
# ═══════════════════════════════════════════════════════════════════════════════

async def test_gateway_checkout_opens_intent_without_touching_stock(workflow, gateway, database, shirt):
    result = await workflow.checkout("alice", draft(medium(shirt), method="ExternalGateway"), URLS)

    match result:
        case Ok(GatewayPending(order, approval_url)):
            assert approval_url == "https://pay.test/approve/INTENT-1"
            assert order.payment.transaction_id == "INTENT-1"
            assert order.awaiting_payment
        case other:
            raise AssertionError(f"unexpected {other!r}")

    assert gateway.opened[0]["amount"] == Decimal("9.35")
    assert gateway.opened[0]["currency"] == "USD"
    assert gateway.opened[0]["order_id"] == order.id
    assert gateway.opened[0]["success_url"] == URLS.success
    assert await stock_of(database, shirt.medium.variation_id) == 10


async def test_failed_intent_rolls_back_order(workflow, gateway, database, shirt):
    gateway.fail_open = IntentCreationFailed("PayPal answered 500.")

    result = await workflow.checkout("alice", draft(medium(shirt), method="Paypal"), URLS)

    assert isinstance(result.error, PaymentInitiationError)
    assert result.error.status == 502
    assert await order_count(database) == 0


async def test_unexpected_intent_failure_rolls_back_order(workflow, gateway, database, shirt):
    gateway.fail_open = RuntimeError("socket closed")

    result = await workflow.checkout("alice", draft(medium(shirt), method="ExternalGateway"), URLS)

    assert isinstance(result.error, PaymentInitiationError)
    assert await order_count(database) == 0


async def test_lost_intent_attachment_rolls_back_order(workflow, orders, database, shirt, monkeypatch):
    async def already_moved(order_id, intent_id):
        return None

    monkeypatch.setattr(orders, "attach_intent", already_moved)

    result = await workflow.checkout("alice", draft(medium(shirt), method="ExternalGateway"), URLS)

    assert isinstance(result.error, PersistenceError)
    assert await order_count(database) == 0


async def test_intent_attachment_crash_rolls_back_order(workflow, orders, database, shirt, monkeypatch):
    async def crash(order_id, intent_id):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(orders, "attach_intent", crash)

    result = await workflow.checkout("alice", draft(medium(shirt), method="ExternalGateway"), URLS)

    assert isinstance(result.error, PersistenceError)
    assert result.error.status == 500
    assert await order_count(database) == 0


async def test_failed_rollback_keeps_the_original_error(
    workflow, gateway, orders, database, shirt, monkeypatch, caplog,
):
    gateway.fail_open = IntentCreationFailed("PayPal answered 500.")

    async def broken_delete(order_id):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(orders, "delete", broken_delete)

    with caplog.at_level(logging.WARNING, logger="shopflow"):
        result = await workflow.checkout("alice", draft(medium(shirt), method="ExternalGateway"), URLS)

    assert isinstance(result.error, PaymentInitiationError)
    assert await order_count(database) == 1
    assert "compensation for persist order failed" in caplog.text
    assert "left data behind" in caplog.text


# ═══════════════════════════════════════════════════════════════════════════════
# Gateway callbacks
# ═══════════════════════════════════════════════════════════════════════════════

async def test_success_callback_captures_once(workflow, gateway, orders, database, shirt):
    order = await place_gateway_order(workflow, shirt)

    first = await workflow.confirm_gateway_payment(order.id, "INTENT-1")
    second = await workflow.confirm_gateway_payment(order.id, "INTENT-1")

    assert first is CallbackOutcome.CAPTURED
    assert second is CallbackOutcome.ALREADY_PROCESSED
    assert gateway.captures == ["INTENT-1"]

    settled = await orders.get(order.id)
    assert settled.status is OrderStatus.PROCESSING
    assert settled.payment.status is PaymentStatus.COMPLETED
    assert settled.payment.transaction_id == "CAPTURE-INTENT-1"
    assert await stock_of(database, shirt.medium.variation_id) == 8


async def test_callback_with_foreign_token_is_invalid(workflow, gateway, orders, shirt):
    order = await place_gateway_order(workflow, shirt)

    outcome = await workflow.confirm_gateway_payment(order.id, "INTENT-999")

    assert outcome is CallbackOutcome.INVALID
    assert gateway.captures == []
    assert (await orders.get(order.id)).awaiting_payment


async def test_declined_capture_cancels_order(workflow, gateway, orders, database, shirt):
    order = await place_gateway_order(workflow, shirt)
    gateway.capture_status = "DECLINED"

    outcome = await workflow.confirm_gateway_payment(order.id, "INTENT-1")

    assert outcome is CallbackOutcome.DECLINED
    cancelled = await orders.get(order.id)
    assert cancelled.status is OrderStatus.CANCELLED
    assert cancelled.payment.status is PaymentStatus.FAILED
    assert await stock_of(database, shirt.medium.variation_id) == 10


async def test_capture_error_fails_order(workflow, gateway, orders, shirt):
    order = await place_gateway_order(workflow, shirt)
    gateway.fail_capture = RuntimeError("connection reset")

    outcome = await workflow.confirm_gateway_payment(order.id, "INTENT-1")

    assert outcome is CallbackOutcome.FAILED
    failed = await orders.get(order.id)
    assert failed.status is OrderStatus.CANCELLED
    assert failed.payment.status is PaymentStatus.FAILED


async def test_stock_failure_after_capture_still_reports_captured(
    workflow, catalog, orders, database, shirt, monkeypatch, caplog,
):
    order = await place_gateway_order(workflow, shirt)

    async def broken_owner(variation_id):
        raise RuntimeError("catalog offline")

    monkeypatch.setattr(catalog, "owner_of", broken_owner)

    with caplog.at_level(logging.ERROR, logger="shopflow"):
        outcome = await workflow.confirm_gateway_payment(order.id, "INTENT-1")

    assert outcome is CallbackOutcome.CAPTURED
    settled = await orders.get(order.id)
    assert settled.status is OrderStatus.PROCESSING
    assert settled.payment.status is PaymentStatus.COMPLETED
    assert await stock_of(database, shirt.medium.variation_id) == 10
    assert "not decremented" in caplog.text


async def test_callback_for_unknown_order(workflow, gateway):
    assert await workflow.confirm_gateway_payment("missing", "INTENT-1") is CallbackOutcome.NOT_FOUND
    assert gateway.captures == []


async def test_cancel_callback_cancels_pending_order(workflow, orders, shirt):
    order = await place_gateway_order(workflow, shirt)

    assert await workflow.cancel_gateway_payment(order.id) is True

    cancelled = await orders.get(order.id)
    assert cancelled.status is OrderStatus.CANCELLED
    assert cancelled.payment.status is PaymentStatus.CANCELLED


async def test_cancel_callback_leaves_progressed_order_alone(workflow, orders, database, shirt):
    order = await place_gateway_order(workflow, shirt)
    await force_status(database, order.id, OrderStatus.COMPLETED)

    assert await workflow.cancel_gateway_payment(order.id) is False

    unchanged = await orders.get(order.id)
    assert unchanged.status is OrderStatus.COMPLETED
    assert unchanged.payment.status is PaymentStatus.PENDING


# ═══════════════════════════════════════════════════════════════════════════════
# Shipping quote
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("address", ["", "   ", None])
async def test_quote_requires_address(workflow, address):
    result = await workflow.quote_shipping(address)

    assert isinstance(result.error, ValidationError)


async def test_quote_for_return_leg(workflow, routing):
    routing.distances["1 Le Duan"] = 12.34

    outbound = await workflow.quote_shipping("1 Le Duan")
    inbound = await workflow.quote_shipping("1 Le Duan", is_return_leg=True)

    assert outbound.value.fee == 38_000
    assert inbound.value.fee == 57_000
    assert inbound.value.distance_km == pytest.approx(12.34)
