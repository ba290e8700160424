"""
FastAPI application — error mapping, lifespan and routes.

    app = create_app(settings=Settings.from_env(os.environ))   # owns DB + HTTP client
    app = create_app(services)                                  # pre-built, e.g. in tests
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shopflow.api._services import Services, build_live_services
from shopflow.api.routes import router
from shopflow.api.schemas import ErrorOut
from shopflow.checkout import describe_errors
from shopflow.config import Settings
from shopflow.db import create_database
from shopflow.errors import ShopError, ValidationError

logger = logging.getLogger(__name__)

PROVIDER_TIMEOUT = httpx.Timeout(10.0, connect=5.0)


async def shop_error_handler(request: Request, exc: ShopError) -> JSONResponse:
    if exc.is_internal:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(ErrorOut.from_domain(exc).dump(), status_code=exc.status)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return await shop_error_handler(request, ValidationError(*describe_errors(exc.errors())))


def _lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        session_factory, engine = await create_database(settings.database_url)
        async with httpx.AsyncClient(timeout=PROVIDER_TIMEOUT) as http:
            app.state.services = build_live_services(settings, session_factory, http)
            logger.info("shopflow ready on %s", settings.database_url)
            try:
                yield
            finally:
                await engine.dispose()

    return lifespan


def create_app(services: Services | None = None, *, settings: Settings | None = None) -> FastAPI:
    if services is None and settings is None:
        raise ValueError("create_app needs either services or settings")

    app = FastAPI(
        title="shopflow",
        version="0.1.0",
        lifespan=_lifespan(settings) if services is None else None,
    )
    if services is not None:
        app.state.services = services

    app.add_exception_handler(ShopError, shop_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


__all__ = ("create_app", "shop_error_handler")
