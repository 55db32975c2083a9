"""FastAPI application for the water lab analysis API."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from ...domain.exceptions import ParameterValidationError, PersistenceError, ReportNotFoundError
from ...infrastructure.logging import setup_logging_from_env
from ...infrastructure.services import initialize_services, shutdown_services
from .middleware import RequestResponseLoggingMiddleware
from .routes import health, lab_analysis, statistics
from .config import get_settings


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    # Startup
    setup_logging_from_env()
    logger.info("Starting Water Lab Analysis API")
    await initialize_services()

    yield

    # Shutdown
    logger.info("Shutting down Water Lab Analysis API")
    await shutdown_services()


def _error_response(status_code: int, detail: str, error_type: str, **fields) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail, "type": error_type, **fields})


def add_exception_handlers(app: FastAPI) -> None:
    """Map domain errors to HTTP responses."""

    @app.exception_handler(ParameterValidationError)
    async def parameter_error_handler(request: Request, exc: ParameterValidationError):
        logger.warning(f"Rejected lab parameter '{exc.field}' on {request.url.path}: {exc.message}")
        return _error_response(400, exc.message, "parameter_validation_error", field=exc.field)

    @app.exception_handler(ReportNotFoundError)
    async def not_found_error_handler(request: Request, exc: ReportNotFoundError):
        logger.warning(f"Unknown report on {request.url.path}: {exc}")
        return _error_response(404, str(exc), "not_found")

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError):
        """Storage failures outside the submit workflow, which reports its own."""
        logger.error(f"Storage failure ({exc.stage}) on {request.url.path}: {exc}")
        return _error_response(
            503 if exc.retryable else 500,
            "Lab result storage is unavailable",
            "persistence_error",
            stage=exc.stage,
            retryable=exc.retryable
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        logger.warning(f"Validation error on {request.url.path}: {exc}")
        return _error_response(400, str(exc), "validation_error")

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(request: Request, exc: RuntimeError):
        logger.error(f"Runtime error on {request.url.path}: {exc}", exc_info=exc)
        return _error_response(500, "Internal server error occurred", "runtime_error")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Water Lab Analysis",
        description="API for scoring, storing and summarising water quality lab analyses",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    add_exception_handlers(app)
    app.add_middleware(RequestResponseLoggingMiddleware, log_request_body=settings.log_request_body)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=settings.allowed_methods,
        allow_headers=settings.allowed_headers,
    )

    app.include_router(health.router, tags=["health"])
    app.include_router(
        lab_analysis.router,
        prefix=settings.api_prefix,
        tags=["lab-analysis"]
    )
    app.include_router(
        statistics.router,
        prefix=f"{settings.api_prefix}/statistics",
        tags=["statistics"]
    )

    return app


app = create_app()
