"""FastAPI application entry point for the Earth Explorer API."""

import logging
import sys

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import Settings, settings as default_settings
from errors import register_error_handlers
from services.cache import TTLCache
from services.rate_limit import RATE_LIMIT_MESSAGE, FixedWindowRateLimiter
from services.upstream import Upstreams

# Structured logging: JSON for production, human-readable for local
if default_settings.is_production:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}',
        stream=sys.stdout,
    )
else:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    cache: TTLCache | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    rate_limiter: FixedWindowRateLimiter | None = None,
) -> FastAPI:
    """Build the app. Cache, HTTP transport and limiter are injectable for tests."""
    settings = settings or default_settings
    app = FastAPI(title="Earth Explorer API", version="1.0.0")

    app.state.upstreams = Upstreams(
        http=httpx.AsyncClient(timeout=settings.http_timeout_seconds, transport=transport),
        cache=cache or TTLCache(default_ttl=settings.cache_ttl_default),
        settings=settings,
    )
    limiter = rate_limiter or FixedWindowRateLimiter(
        max_requests=settings.rate_limit_max,
        window_seconds=settings.rate_limit_window_seconds,
    )

    # Fixed-window rate limit on the API surface only
    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        if not request.url.path.startswith("/api"):
            return await call_next(request)

        client_id = request.client.host if request.client else "unknown"
        decision = limiter.hit(client_id)
        headers = {
            "RateLimit-Limit": str(decision.limit),
            "RateLimit-Remaining": str(decision.remaining),
            "RateLimit-Reset": str(decision.reset_after),
        }
        if not decision.allowed:
            logger.info("Rate limit exceeded for %s on %s", client_id, request.url.path)
            return JSONResponse(
                {"error": RATE_LIMIT_MESSAGE},
                status_code=429,
                headers={**headers, "Retry-After": str(decision.reset_after)},
            )

        response: Response = await call_next(request)
        response.headers.update(headers)
        return response

    # Security headers
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    # CORS is added last: outermost, so limiter 429s carry it too
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Centralized error handlers
    register_error_handlers(app)

    from routes.explore import router as explore_router
    from routes.health import router as health_router
    from routes.knowledge import router as knowledge_router
    from routes.location import router as location_router

    app.include_router(health_router)
    app.include_router(location_router)
    app.include_router(knowledge_router)
    app.include_router(explore_router)

    @app.on_event("startup")
    async def _validate_config() -> None:
        missing = settings.validate()
        if missing:
            logger.warning("Missing env vars (those endpoints will fail): %s", ", ".join(missing))

    @app.on_event("shutdown")
    async def _close_http_client() -> None:
        await app.state.upstreams.http.aclose()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=default_settings.port)
