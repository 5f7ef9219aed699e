"""CommuniTrack ASGI application: middleware, lifespan and router mounting."""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from communitrack import __version__
from communitrack.config import settings
from communitrack.storage import create_store

logger = logging.getLogger(__name__)

# Per-client default applied to every route by SlowAPIMiddleware
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.server.rate_limit_per_minute}/minute"],
)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Content-Security-Policy": (
        "default-src 'self'; frame-ancestors 'none'; form-action 'self'; "
        "base-uri 'self'; object-src 'none';"
    ),
}
HSTS_HEADER = "max-age=31536000; includeSubDomains; preload"
MIN_SECRET_KEY_LENGTH = 32


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds SECURITY_HEADERS to every response, plus HSTS when HTTPS is enforced."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        if settings.server.enforce_https:
            response.headers["Strict-Transport-Security"] = HSTS_HEADER
        return response


def _is_production() -> bool:
    return not settings.server.debug and not os.getenv("PYTEST_CURRENT_TEST")


def _validate_security_configuration() -> None:
    """Refuse to start in production with a weak secret key; warn otherwise.

    Raises:
        RuntimeError: If the secret key is missing or short outside debug mode.
    """
    production = _is_production()

    if production:
        if settings.database_backend == "memory":
            logger.warning("SECURITY WARNING: No MongoDB configured; entries are lost on shutdown.")
        if not settings.server.enforce_https:
            logger.warning("SECURITY WARNING: server.enforce_https is off.")

    if len(settings.secret_key) >= MIN_SECRET_KEY_LENGTH:
        return
    problem = (
        f"Secret key is missing or shorter than {MIN_SECRET_KEY_LENGTH} characters. "
        "Set COMMUNITRACK_SECRET_KEY."
    )
    if production:
        logger.error("SECURITY ERROR: %s", problem)
        raise RuntimeError("Startup blocked by insecure configuration; see logs.")
    logger.warning("SECURITY WARNING (development mode): %s", problem)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the configured store for the lifetime of the app."""
    _validate_security_configuration()

    store = create_store(settings)
    await store.connect()
    app.state.store = store
    logger.info("CommuniTrack %s started with %s storage", __version__, store.name)
    try:
        yield
    finally:
        await store.close()
        logger.info("CommuniTrack stopped")


app = FastAPI(
    title=settings.config.app_name,
    description="Communication incident log with spreadsheet import",
    version=__version__,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# No configured origins means same-origin only
if settings.server.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        allow_headers=["Authorization", "Content-Type"],
        max_age=600,
    )

app.add_middleware(SecurityHeadersMiddleware)


@app.get("/health", tags=["Health"])
async def health_check(request: Request) -> JSONResponse:
    store = getattr(request.app.state, "store", None)
    return JSONResponse(
        content={
            "status": "healthy",
            "version": __version__,
            "app_name": settings.config.app_name,
            "storage": store.name if store else None,
        }
    )


from communitrack.routers import auth, entries, import_router  # noqa: E402

app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(entries.router, prefix="/api/entries", tags=["Entries"])
app.include_router(import_router.router, prefix="/api/import", tags=["Import"])
