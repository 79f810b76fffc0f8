"""
═══════════════════════════════════════════════════════════════════════════════
Vrai — Application entry point
═══════════════════════════════════════════════════════════════════════════════

Application factory for the Vrai authentication service. The lifespan awaits
backend initialisation (hosted platform or in-memory fallback) before the
first request is served and stores the resulting ``AppContext`` on
``app.state.context``.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from http import HTTPStatus

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vrai import __version__
from vrai.config import VraiSettings, get_settings
from vrai.context import create_context
from vrai.exceptions import VraiError

from vrai.api.admin import router as admin_router
from vrai.api.auth import router as auth_router
from vrai.api.health import router as health_router
from vrai.api.profile import router as profile_router
from vrai.api.submissions import router as submissions_router
from vrai.api.support import router as support_router
from vrai.api.users import router as users_router

# ═══════════════════════════════════════════════════════════════════════════════
# Logging
# ═══════════════════════════════════════════════════════════════════════════════
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

STATUS_MAP = {
    "VRAI_AUTH_ERROR": 401,
    "VRAI_AUTHZ_ERROR": 403,
    "VRAI_NOT_FOUND": 404,
    "VRAI_CONFLICT": 409,
    "VRAI_VALIDATION_ERROR": 400,
    "VRAI_PRECONDITION_FAILED": 400,
    "VRAI_REMOTE_ERROR": 500,
}


def error_envelope(status_code: int, message: str, code: str, details: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": HTTPStatus(status_code).phrase,
            "message": message,
            "code": code,
            "details": details or {},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Lifespan
# ═══════════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
        1. Builds the AppContext (hosted platform, or memory store when it is
           not configured or not reachable).
    Shutdown:
        1. Closes the remote client.
    """
    settings: VraiSettings = app.state.settings
    logging.getLogger().setLevel(settings.log_level.upper())
    logger.info(f"🚀 Vrai v{__version__} starting...")
    logger.info(f"   Environment: {settings.app_env}, log level: {settings.log_level}")

    context = await create_context(settings)
    app.state.context = context
    logger.info(f"✅ Backend ready: {context.remote.backend_name}")

    yield

    await context.close()
    logger.info("🛑 Vrai stopped")


# ═══════════════════════════════════════════════════════════════════════════════
# Application factory
# ═══════════════════════════════════════════════════════════════════════════════

def create_app(settings: VraiSettings | None = None) -> FastAPI:
    """Creates and configures the Vrai FastAPI application."""
    settings = settings or get_settings()

    _is_production = settings.app_env == "production"

    app = FastAPI(
        title="Vrai",
        description=(
            "Luxury-goods authentication service. Users submit photos through a "
            "multi-step wizard; admins review requests, answer support tickets "
            "and publish PDF authentication reports."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url=None if _is_production else "/docs",
        redoc_url=None if _is_production else "/redoc",
    )
    app.state.settings = settings

    # ── CORS middleware ──────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "X-Requested-With"],
    )

    # ── Routers ──────────────────────────────────────────────────────────
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(profile_router)
    app.include_router(submissions_router)
    app.include_router(support_router)
    app.include_router(admin_router)
    app.include_router(health_router)

    # ── Error handlers ───────────────────────────────────────────────────
    @app.exception_handler(VraiError)
    async def vrai_error_handler(request: Request, exc: VraiError) -> JSONResponse:
        """Maps Vrai error codes to HTTP statuses."""
        status_code = STATUS_MAP.get(exc.code, 500)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return error_envelope(status_code, exc.message, exc.code, exc.details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg")}
            for err in exc.errors()
        ]
        return error_envelope(
            400, "Invalid request data", "VRAI_VALIDATION_ERROR", {"errors": errors}
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"💥 Unexpected error on {request.method} {request.url.path}")
        return error_envelope(500, "An unexpected error occurred", "VRAI_INTERNAL_ERROR")

    # ── Root endpoint ────────────────────────────────────────────────────
    @app.get("/")
    async def root():
        return {
            "name": "Vrai",
            "version": __version__,
            "description": "Luxury-goods authentication service",
            "docs": "/docs",
            "api": {
                "health": "/health",
                "register": "/register",
                "login": "/login",
                "submissions": "/api/submissions/draft",
                "admin": "/api/admin/authentication-requests",
            },
        }

    return app


# ═══════════════════════════════════════════════════════════════════════════════
# Module-level singleton
# ═══════════════════════════════════════════════════════════════════════════════
app = create_app()


def main() -> None:
    """Runs the Vrai service with Uvicorn."""
    settings = get_settings()
    logger.info(f"Starting Vrai server on {settings.api_host}:{settings.api_port}")
    uvicorn.run(
        "vrai.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
