"""FastAPI application factory with dependency injection.

This module provides the create_app() factory function that creates a
configured FastAPI application. The app receives the Pet and Settings
from main.py rather than creating them itself.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from virtualpet.config import Settings
from virtualpet.core.pet import Pet

logger = structlog.get_logger()


class AppState:
    """Application state container for dependency injection.

    Holds references to the shared components used by API routes.
    """

    def __init__(self, pet: Pet, settings: Settings, start_time: float) -> None:
        """Initialize app state.

        Args:
            pet: The pet served by this process.
            settings: Application settings (static directory, etc.).
            start_time: Server start timestamp for uptime calculation.
        """
        self.pet = pet
        self.settings = settings
        self.start_time = start_time


def create_app(pet: Pet, settings: Settings) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        pet: Pet instance constructed in main.py.
        settings: Application settings.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Virtual Pet",
        description="Virtual pet simulator with replies from a generative language model",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Accept"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "http_request",
            status=response.status_code,
            latency_ms=round((time.perf_counter() - started) * 1000, 2),
            method=request.method,
            path=request.url.path,
        )
        return response

    app.state.app_state = AppState(
        pet=pet,
        settings=settings,
        start_time=time.time(),
    )

    from virtualpet.api.routes_pet import router as pet_router

    app.include_router(pet_router)

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        """Liveness probe."""
        app_state = app.state.app_state
        return {
            "status": "healthy",
            "pet": app_state.pet.name,
            "uptime_seconds": f"{time.time() - app_state.start_time:.1f}",
        }

    return app
