"""
Application Factory

Builds the FastAPI app and owns every long-lived object it needs: the
storage handle, the email allow-list and the settings. Route handlers
reach them through app.state, never through module globals.

ERROR MAPPING:
- Request/body validation     -> 400 {message, errors}
- NotFoundError               -> 404 {message}
- StorageError / anything else -> 500 {message}; details go to the log only
"""

import asyncio
from contextlib import asynccontextmanager, suppress
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

import expense_tracker
from expense_tracker.api.routes import admin, auth, balance, expenses, health
from expense_tracker.auth import EmailAllowList
from expense_tracker.config import Settings, get_settings
from expense_tracker.log import configure_logging
from expense_tracker.services.storage import (
    NotFoundError,
    StorageError,
    StorageHandle,
    StorageInitializer,
)


logger = structlog.get_logger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"]


async def _initialize_storage(initializer: StorageInitializer, handle: StorageHandle) -> None:
    try:
        await initializer.initialize(handle)
    except Exception:
        # The handle keeps serving its default in-memory backend.
        logger.error("storage_initialization_failed", exc_info=True)


def _validation_response(errors: list) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid data", "errors": jsonable_encoder(errors)},
    )


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _validation_response(exc.errors())

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError):
        return _validation_response(exc.errors(include_url=False))

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"message": str(exc)})

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error(
            "request_failed",
            method=request.method,
            path=request.url.path,
            error=str(exc),
        )
        return JSONResponse(status_code=500, content={"message": "Internal server error"})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.error(
            "request_failed",
            method=request.method,
            path=request.url.path,
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_app(
    settings: Optional[Settings] = None,
    storage_handle: Optional[StorageHandle] = None,
    allow_list: Optional[EmailAllowList] = None,
    initializer: Optional[StorageInitializer] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings root; defaults to get_settings()
        storage_handle: Pre-built handle. When given, no probing happens
                        unless an initializer is passed as well.
        allow_list: Pre-built allow-list; defaults to the configured emails
        initializer: Backend selection to run in the background at startup

    Returns:
        The FastAPI application
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level, app_settings.log_json)

    if storage_handle is None:
        storage_handle = StorageHandle()
        if initializer is None:
            initializer = StorageInitializer(
                database=settings.database,
                supabase=settings.supabase,
                rest_timeout=app_settings.rest_probe_timeout_seconds,
                direct_timeout=app_settings.direct_probe_timeout_seconds,
            )

    if allow_list is None:
        allow_list = EmailAllowList(settings.auth.authorized_emails_list)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        task = None
        if initializer is not None:
            task = asyncio.create_task(_initialize_storage(initializer, storage_handle))
        logger.info("app_started", environment=app_settings.app_environment)
        try:
            yield
        finally:
            if task is not None and not task.done():
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
            await storage_handle.close()
            logger.info("app_stopped")

    app = FastAPI(
        title="Expense Tracker",
        version=expense_tracker.__version__,
        debug=app_settings.debug_mode,
        lifespan=lifespan,
    )
    app.state.storage_handle = storage_handle
    app.state.allow_list = allow_list
    app.state.app_settings = app_settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )
    _install_error_handlers(app)

    for module in (health, auth, admin, balance, expenses):
        app.include_router(module.router)

    return app
