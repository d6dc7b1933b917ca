"""FastAPI application factory for the EcoFlux dashboard API."""

from __future__ import annotations

from fastapi import FastAPI, Request

from ecoflux import __version__
from ecoflux.config.manager import ConfigManager
from ecoflux.config.schema import AppConfig
from ecoflux.control.loop import SimulationLoop
from ecoflux.dashboard.auth import AuthMiddleware, auth_router
from ecoflux.weather import WeatherProvider


def create_app(
    config: AppConfig,
    loop: SimulationLoop,
    weather: WeatherProvider,
    config_manager: ConfigManager | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="EcoFlux",
        description="Hybrid microgrid monitoring and control",
        version=__version__,
    )

    @app.middleware("http")
    async def disable_cache(request: Request, call_next):
        response = await call_next(request)
        if request.method in {"GET", "HEAD"}:
            response.headers["Cache-Control"] = "no-store, max-age=0"
        return response

    app.state.config = config
    app.state.config_manager = config_manager
    app.state.simulation = loop
    app.state.weather = weather

    app.include_router(auth_router)

    from ecoflux.dashboard.routes.api import router as api_router
    from ecoflux.dashboard.routes.sse import router as sse_router

    app.include_router(api_router, prefix="/api")
    app.include_router(sse_router, prefix="/api")

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "running": loop.state.is_running}

    if config.dashboard.auth.users:
        app.add_middleware(AuthMiddleware, auth_config=config.dashboard.auth)

    return app
