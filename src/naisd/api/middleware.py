"""API middleware for logging, metrics, and error handling."""

import time
import uuid
from typing import Callable

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import Counter, Histogram
from starlette.exceptions import HTTPException as StarletteHTTPException

from naisd.api.deploy import format_result
from naisd.core.exceptions import (
    ApplyError,
    DeploymentValidationError,
    MalformedRequestError,
    NaisdError,
)

logger = structlog.get_logger()

# Prometheus metrics
REQUEST_COUNT = Counter(
    "naisd_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

REQUEST_DURATION = Histogram(
    "naisd_http_request_duration_seconds",
    "HTTP request duration",
    ["method", "endpoint"],
)

# Failures caused by the caller; everything else is on our side
CLIENT_ERRORS = (MalformedRequestError, DeploymentValidationError)


def error_status(exc: NaisdError) -> int:
    return 400 if isinstance(exc, CLIENT_ERRORS) else 500


def error_body(exc: NaisdError) -> str:
    """Plain-text body: one violation per line, or the message plus any partial trail."""
    if isinstance(exc, DeploymentValidationError):
        return "".join(f"{violation}\n" for violation in exc.violations)
    if isinstance(exc, ApplyError):
        return f"{exc}\n" + format_result(exc.applied)
    return f"{exc}\n"


def setup_error_handling(app: FastAPI) -> None:
    """Setup error handling middleware."""

    @app.exception_handler(NaisdError)
    async def naisd_error_handler(request: Request, exc: NaisdError) -> PlainTextResponse:
        """Map pipeline errors to client or server status classes."""
        return PlainTextResponse(
            error_body(exc),
            status_code=error_status(exc),
            headers={"X-Error-Type": exc.__class__.__name__},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Handle HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": "HTTPException",
                "message": exc.detail,
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unexpected error", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={
                "error": "InternalServerError",
                "message": "An unexpected error occurred",
            },
        )


def setup_logging_middleware(app: FastAPI) -> None:
    """Setup request logging middleware."""

    @app.middleware("http")
    async def log_requests(request: Request, call_next: Callable) -> Response:
        """Log all requests."""
        request_id = str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client=request.client.host if request.client else None,
        )
        start_time = time.time()

        try:
            response = await call_next(request)

            duration = time.time() - start_time
            logger.info(
                "Request completed",
                status_code=response.status_code,
                duration_seconds=duration,
            )

            response.headers["X-Request-ID"] = request_id

            return response

        except Exception as exc:
            duration = time.time() - start_time
            logger.exception(
                "Request failed",
                duration_seconds=duration,
                exc_info=exc,
            )
            raise


def setup_metrics_middleware(app: FastAPI) -> None:
    """Setup metrics collection middleware."""

    @app.middleware("http")
    async def collect_metrics(request: Request, call_next: Callable) -> Response:
        """Collect request metrics."""
        start_time = time.time()

        response = await call_next(request)

        duration = time.time() - start_time
        endpoint = request.url.path

        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code,
        ).inc()

        REQUEST_DURATION.labels(
            method=request.method,
            endpoint=endpoint,
        ).observe(duration)

        return response
