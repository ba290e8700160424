"""
Payment routes — fee quote, order creation and gateway callbacks.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from kungfu import Ok, Error

from shopflow.api._services import Services
from shopflow.api.schemas import (
    CreateOrderOut,
    ShippingFeeIn,
    ShippingFeeOut,
)
from shopflow.checkout import CheckoutDraft
from shopflow.domain import CallbackOutcome, CallbackUrls
from shopflow.errors import Unauthorized

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payment", tags=["payment"])

_bearer = HTTPBearer(auto_error=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Dependencies
# ═══════════════════════════════════════════════════════════════════════════════

def get_services(request: Request) -> Services:
    return request.app.state.services


async def current_user(
    services: Annotated[Services, Depends(get_services)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> str:
    if credentials is None:
        raise Unauthorized("Missing bearer token.")
    user_id = await services.authenticator(credentials.credentials)
    if user_id is None:
        raise Unauthorized("Unknown or expired token.")
    return user_id


def callback_urls(request: Request, services: Services) -> CallbackUrls:
    base = services.settings.public_base_url
    if base:
        base = base.rstrip("/")
        return CallbackUrls(
            success=f"{base}{router.prefix}/gateway/success",
            cancel=f"{base}{router.prefix}/gateway/cancel",
        )
    return CallbackUrls(
        success=str(request.url_for("gateway_success")),
        cancel=str(request.url_for("gateway_cancel")),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout
# ═══════════════════════════════════════════════════════════════════════════════

@router.post("/calculate-shipping-fee")
async def calculate_shipping_fee(
    body: ShippingFeeIn,
    services: Annotated[Services, Depends(get_services)],
    _: Annotated[str, Depends(current_user)],
) -> JSONResponse:
    match await services.workflow.quote_shipping(body.to_address, body.is_return):
        case Ok(quote):
            return JSONResponse(ShippingFeeOut.from_domain(quote).dump())
        case Error(e):
            raise e


@router.post("/createOrder", status_code=201)
async def create_order(
    body: CheckoutDraft,
    request: Request,
    services: Annotated[Services, Depends(get_services)],
    user_id: Annotated[str, Depends(current_user)],
) -> JSONResponse:
    urls = callback_urls(request, services)
    match await services.workflow.checkout(user_id, body, urls):
        case Ok(outcome):
            return JSONResponse(CreateOrderOut.from_domain(outcome).dump(), status_code=201)
        case Error(e):
            raise e


# ═══════════════════════════════════════════════════════════════════════════════
# Gateway callbacks (browser redirects, unauthenticated)
# ═══════════════════════════════════════════════════════════════════════════════

_FAILURE_REASONS = {
    CallbackOutcome.INVALID: "InvalidCallbackData",
    CallbackOutcome.NOT_FOUND: "OrderNotFound",
    CallbackOutcome.DECLINED: "PaymentCaptureFailed",
    CallbackOutcome.FAILED: "ProcessingError",
}


@router.get("/gateway/success", name="gateway_success")
async def gateway_success(
    services: Annotated[Services, Depends(get_services)],
    token: str | None = None,
    orderId: str | None = None,  # noqa: N803
) -> RedirectResponse:
    frontend = services.settings.frontend
    if not token or not orderId:
        logger.warning("gateway success callback without token or order id")
        return RedirectResponse(frontend.payment_error("InvalidCallbackData", orderId), status_code=302)

    outcome = await services.workflow.confirm_gateway_payment(orderId, token)
    match outcome:
        case CallbackOutcome.CAPTURED:
            target = frontend.checkout_success(orderId)
        case CallbackOutcome.ALREADY_PROCESSED:
            target = frontend.already_processed(orderId)
        case _:
            target = frontend.payment_error(_FAILURE_REASONS[outcome], orderId)
    return RedirectResponse(target, status_code=302)


@router.get("/gateway/cancel", name="gateway_cancel")
async def gateway_cancel(
    services: Annotated[Services, Depends(get_services)],
    orderId: str | None = None,  # noqa: N803
) -> RedirectResponse:
    if orderId:
        await services.workflow.cancel_gateway_payment(orderId)
    else:
        logger.warning("gateway cancel callback without order id")
    return RedirectResponse(services.settings.frontend.payment_cancelled(orderId), status_code=302)


__all__ = ("router", "get_services", "current_user", "callback_urls")
