"""Catalog API main application module.

This module initializes the FastAPI application and configures
core middleware, routers, exception handlers and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException

from catalog_api.api.health import router as health_router
from catalog_api.api.middleware import setup_middleware
from catalog_api.api.products import router as products_router
from catalog_api.api.schemas import ErrorDetail, ErrorResponse
from catalog_api.catalog.service import get_image_store
from catalog_api.domain.exceptions import CatalogError
from catalog_api.infrastructure.config import settings
from catalog_api.infrastructure.database import dispose_engine
from catalog_api.infrastructure.logging import configure_logging

configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    logger.info(
        "Starting Catalog API",
        version=settings.api_version,
        storage_backend=settings.storage_backend,
        image_dir=settings.image_dir,
    )
    get_image_store().ensure_directory()

    yield

    if settings.storage_backend == "database":
        await dispose_engine()
    logger.info("Shutting down Catalog API")


def error_response(
    status_code: int,
    message: str,
    errors: list[ErrorDetail] | None = None,
) -> JSONResponse:
    """Render the standard error envelope."""
    body = ErrorResponse(message=message, errors=errors)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


def create_app() -> FastAPI:
    """Build the application."""
    app = FastAPI(
        title="Catalog API",
        description="Product catalog management for the storefront",
        version=settings.api_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS middleware (must be added before custom middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_middleware(app)

    app.include_router(health_router, tags=["Health"])
    app.include_router(products_router)

    # Served straight from the image store directory.
    image_store = get_image_store()
    app.mount(
        image_store.url_path,
        StaticFiles(directory=image_store.directory, check_dir=False),
        name="images",
    )

    register_exception_handlers(app)
    return app


# ============================================================================
# Custom Exception Handlers
# ============================================================================


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain and framework errors onto the error envelope."""

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        if exc.status_code >= 500:
            logger.error(
                "Catalog operation failed",
                path=request.url.path,
                method=request.method,
                error=exc.message,
                details=exc.details,
            )
        errors = None
        if exc.details.get("errors"):
            errors = [ErrorDetail(**error) for error in exc.details["errors"]]
        return error_response(exc.status_code, exc.message, errors)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            ErrorDetail(
                field=".".join(str(part) for part in error["loc"] if part != "body"),
                message=error["msg"],
            )
            for error in exc.errors()
        ]
        return error_response(400, "Validation failed", errors)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        response = error_response(exc.status_code, str(exc.detail))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled exception in handler",
            path=request.url.path,
            method=request.method,
            error=str(exc),
        )
        return error_response(500, "Internal server error")


app = create_app()
