"""Custom exceptions and centralized FastAPI error handlers."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class EarthAPIError(Exception):
    """Base exception with HTTP status code."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class ValidationError(EarthAPIError):
    """A required query parameter is missing or unusable."""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class ConfigurationError(EarthAPIError):
    """An upstream credential is not configured. Never retried or cached."""

    def __init__(self, env_var: str, message: str | None = None, status_code: int = 500):
        super().__init__(message or f"{env_var} not configured", status_code=status_code)
        self.env_var = env_var


class UpstreamError(EarthAPIError):
    """A third-party call failed: network error, non-2xx, timeout or bad body.

    ``str(exc)`` is the generic message returned to clients; ``cause`` holds
    the underlying detail, which is logged and only exposed when
    ``expose_details`` is set.
    """

    def __init__(
        self,
        message: str,
        service: str,
        cause: str = "",
        expose_details: bool = False,
    ):
        super().__init__(message, status_code=500)
        self.service = service
        self.cause = cause
        self.expose_details = expose_details


def register_error_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(UpstreamError)
    async def handle_upstream_error(_request: Request, exc: UpstreamError):
        logger.error("%s upstream failed: %s", exc.service, exc.cause)
        body = {"error": str(exc)}
        if exc.expose_details:
            body["details"] = exc.cause
        return JSONResponse(body, status_code=exc.status_code)

    @app.exception_handler(EarthAPIError)
    async def handle_earth_api_error(_request: Request, exc: EarthAPIError):
        if isinstance(exc, ConfigurationError):
            logger.warning("Configuration error: %s", exc)
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(_request: Request, exc: RequestValidationError):
        problems = [
            f"{'.'.join(str(part) for part in err['loc'] if part != 'query')}: {err['msg']}"
            for err in exc.errors()
        ]
        return JSONResponse({"error": "; ".join(problems)}, status_code=400)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(_request: Request, exc: StarletteHTTPException):
        message = "Not found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse({"error": message}, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(
            {"error": "Internal server error"},
            status_code=500,
        )
