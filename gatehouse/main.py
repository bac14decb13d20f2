"""FastAPI application entry point."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from gatehouse.config import get_auth_config, settings
from gatehouse.database import async_session_maker
from gatehouse.exceptions import AuthError
from gatehouse.routes import auth, dashboard
from gatehouse.services.sweeper import sweeper_loop

logger = logging.getLogger(__name__)

__version__ = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the expired-session sweeper for the lifetime of the app."""
    # Startup: periodic cleanup of expired sessions and verifications
    sweeper = asyncio.create_task(
        sweeper_loop(async_session_maker, get_auth_config(), settings.session_sweep_interval_seconds)
    )
    logger.info(
        "Expired-session sweep started (every %d seconds)", settings.session_sweep_interval_seconds
    )

    yield  # Application runs here

    # Shutdown: stop the sweep
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add framing, sniffing and referrer headers; disable caching on auth routes."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Session responses must never be cached by intermediaries
        if request.url.path.startswith("/api/auth"):
            response.headers["Cache-Control"] = "no-store"
        return response


app = FastAPI(
    title="Gatehouse",
    description="User registration, credential and OAuth sign-in, and session management",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Security headers middleware (applied to all responses)
app.add_middleware(SecurityHeadersMiddleware)

# CORS middleware for frontend; credentials are needed for the session cookie
_cors_origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type"],
)

# Include API routers
app.include_router(auth.router, prefix="/api")
app.include_router(dashboard.router, prefix="/api")


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def root() -> dict:
    """Service name, version and docs location."""
    return {
        "name": "Gatehouse API",
        "version": __version__,
        "docs": "/docs",
    }
