"""FastAPI application bootstrap and lifecycle wiring."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from charging_backend.controllers.charge_station_controller import router as charge_station_router
from charging_backend.controllers.connector_controller import router as connector_router
from charging_backend.controllers.group_controller import router as group_router
from charging_backend.repository.charging_repository import ChargingRepository
from charging_backend.services.mutation_service import ChargingMutationService
from charging_backend.utils.config import Settings, get_settings
from charging_backend.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the app with explicit startup lifecycle dependencies.

    Repository and service are created here and exposed through
    ``app.state`` so controllers resolve them per request.
    """
    settings = settings or get_settings()
    repository = ChargingRepository(settings)
    mutation_service = ChargingMutationService(
        repository=repository,
        settings=settings,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.include_router(group_router)
    app.include_router(charge_station_router)
    app.include_router(connector_router)

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.state.settings = settings
    app.state.repository = repository
    app.state.mutation_service = mutation_service

    return app


def startup(app: FastAPI) -> None:
    """Idempotent startup: schema first, then the optional demo seed."""
    repository: ChargingRepository = app.state.repository
    settings: Settings = app.state.settings

    repository.initialize_database()
    if settings.seed_demo_data:
        repository.seed_demo_hierarchy()
    logger.info("System startup completed")


app = create_app()
