"""
FastAPI application factory for SolSpore.

- Lifespan owns the Container: database, payment rail and services
- CORS for the web front end
- Typed errors rendered as {"success": false, "error": kind, "message": ...}
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from solspore import __version__
from solspore.api.routes import (
    admin_router,
    auth_router,
    bets_router,
    leaderboard_router,
    markets_router,
    tournaments_router,
    wallets_router,
)
from solspore.config import Settings, get_settings
from solspore.container import Container
from solspore.exceptions import InvalidRequest, SolSporeError

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    container: Optional[Container] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Defaults to the cached environment settings
        container: Pre-built collaborators (tests pass one with an in-memory store)
    """
    settings = settings or get_settings()
    container = container or Container(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting SolSpore API ({settings.environment}, debug={settings.debug})")
        await container.startup()

        if await container.database.ping():
            logger.info(f"MongoDB connection successful: {container.database.info()}")
        else:
            logger.error(f"MongoDB connection failed: {container.database.info()}")

        app.state.container = container
        logger.info("SolSpore API startup complete")

        yield

        logger.info("Shutting down SolSpore API")
        await container.shutdown()

    app = FastAPI(
        title="SolSpore API",
        description="Esports match wagering with Solana payment rails",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SolSporeError)
    async def solspore_error_handler(request: Request, exc: SolSporeError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.kind}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
            for error in exc.errors()
        )
        error = InvalidRequest(details or None)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.get("/health", tags=["Health"])
    async def health_check() -> Dict[str, str]:
        """Health status of the application and database."""
        db_connected = await container.database.ping()

        return {
            "status": "healthy" if db_connected else "degraded",
            "service": "solspore-api",
            "version": __version__,
            "database": "connected" if db_connected else "disconnected",
            "environment": settings.environment,
        }

    @app.get("/", tags=["Root"])
    async def root() -> Dict[str, Any]:
        return {
            "name": "SolSpore API",
            "version": __version__,
            "description": "Esports match wagering with Solana payment rails",
            "docs": "/docs",
            "health": "/health",
        }

    app.include_router(markets_router)
    app.include_router(bets_router)
    app.include_router(tournaments_router)
    app.include_router(admin_router)
    app.include_router(auth_router)
    app.include_router(leaderboard_router)
    app.include_router(wallets_router)

    return app
