"""Application factory for the inventory API.

Brings together configuration, logging, middleware, error handlers, the
``/api`` routers and metrics. ``uvicorn estoque.main:app`` serves the module
level instance.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.errors import (
    AppError,
    app_error_handler,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from .core.logging import setup_logging
from .db.seed import init_db
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware
from .routers import analytics, auth, equipamentos, movimentacoes, usuarios


def create_app(*, init_database: bool = True) -> FastAPI:
    setup_logging()

    app = FastAPI(title=settings.APP_NAME)

    # Starlette runs the most recently added middleware first, so request ids
    # are assigned before anything else sees the request.
    app.add_middleware(SecurityHeadersMiddleware, auth_path_prefix=f"{settings.API_PREFIX}/auth")
    if settings.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    for module in (auth, usuarios, equipamentos, movimentacoes, analytics):
        app.include_router(module.router, prefix=settings.API_PREFIX)

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, bool]:
        return {"ok": True}

    if settings.METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, include_in_schema=False)

    if init_database:
        init_db()

    return app


app = create_app()
