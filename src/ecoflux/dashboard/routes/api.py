"""REST API endpoints returning JSON data."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from ecoflux.access import Capability, PermissionDeniedError, capabilities_of
from ecoflux.control.state import ControlLockedError
from ecoflux.dashboard.auth import current_role, deny_unless
from ecoflux.dashboard.log_buffer import log_buffer
from ecoflux.plant.simulator import WeatherOverride
from ecoflux.strategy import recommend_strategy

router = APIRouter()
logger = logging.getLogger(__name__)


# ── Request models ───────────────────────────────────

class ControlRequest(BaseModel):
    changes: dict[str, Any] = Field(min_length=1)


class WeatherRequest(BaseModel):
    cloud_cover_pct: float | None = Field(None, ge=0.0, le=100.0)
    wind_speed_ms: float | None = Field(None, ge=0.0)
    temp_c: float | None = None
    irradiance_wm2: float | None = Field(None, ge=0.0)
    rain_probability_pct: float | None = Field(None, ge=0.0, le=100.0)


class PlantOverrideRequest(BaseModel):
    """Source voltages to pin; both None resumes normal drift."""

    solar_voltage: float | None = Field(None, ge=0.0)
    wind_voltage: float | None = Field(None, ge=0.0)


# ── Telemetry ────────────────────────────────────────

@router.get("/telemetry")
async def telemetry(request: Request) -> dict:
    """Latest plant snapshot."""
    loop = request.app.state.simulation
    return {
        "tick": loop.state.tick_count,
        "telemetry": loop.snapshot.to_dict(),
    }


@router.get("/history")
async def history(request: Request) -> dict:
    """Rolling chart window, oldest first."""
    return {"points": request.app.state.simulation.history.points()}


@router.get("/notifications")
async def notifications(request: Request) -> dict:
    return {"notifications": request.app.state.simulation.notifications.items()}


@router.delete("/notifications")
async def clear_notifications(request: Request) -> dict:
    request.app.state.simulation.notifications.clear()
    return {"status": "cleared"}


# ── Controls ─────────────────────────────────────────

@router.get("/controls")
async def get_controls(request: Request) -> dict:
    state = request.app.state.simulation.controls.snapshot()
    return {"controls": state.model_dump(mode="json")}


@router.post("/controls")
async def set_controls(request: Request, body: ControlRequest):
    """Apply operator control changes (RPC)."""
    store = request.app.state.simulation.controls
    role = current_role(request)
    try:
        state = store.update(body.changes, role)
    except PermissionDeniedError:
        logger.warning("Control change denied for role=%s: %s", role.value, list(body.changes))
        return JSONResponse(
            {"error": "Insufficient permissions. Contact Supervisor."}, status_code=403
        )
    except ControlLockedError as e:
        return JSONResponse({"error": str(e)}, status_code=409)
    except KeyError as e:
        return JSONResponse({"error": str(e.args[0])}, status_code=400)
    except ValidationError as e:
        return JSONResponse(
            {"error": "Invalid control value", "detail": e.errors(include_url=False, include_context=False)},
            status_code=422,
        )
    return {"status": "ok", "controls": state.model_dump(mode="json")}


# ── Weather & strategy ───────────────────────────────

@router.get("/weather")
async def get_weather(request: Request) -> dict:
    return {"weather": request.app.state.weather.current.to_dict()}


@router.get("/weather/history")
async def weather_history(request: Request) -> dict:
    """Trailing daily wind and irradiance, oldest first."""
    return {"days": [asdict(d) for d in request.app.state.weather.history]}


@router.post("/weather")
async def set_weather(request: Request, body: WeatherRequest):
    """Replace current conditions (manager/admin)."""
    denied = deny_unless(request, Capability.VIEW_ADMIN)
    if denied:
        return denied
    changes = body.model_dump(exclude_none=True)
    weather = request.app.state.weather.update(**changes)
    return {"weather": weather.to_dict()}


@router.post("/plant/override")
async def set_plant_override(request: Request, body: PlantOverrideRequest):
    """Pin solar and/or wind voltage from the next tick on (manager/admin)."""
    denied = deny_unless(request, Capability.VIEW_ADMIN)
    if denied:
        return denied
    loop = request.app.state.simulation
    if body.solar_voltage is None and body.wind_voltage is None:
        loop.set_weather_override(None)
        logger.info("Plant override cleared")
        return {"override": None}
    override = WeatherOverride(solar_voltage=body.solar_voltage, wind_voltage=body.wind_voltage)
    loop.set_weather_override(override)
    logger.info("Plant override set: solar=%s wind=%s", body.solar_voltage, body.wind_voltage)
    return {"override": asdict(override)}


@router.get("/strategy")
async def strategy(request: Request) -> dict:
    """Recommended source priority for current weather."""
    weather = request.app.state.weather.current
    priority = request.app.state.simulation.controls.snapshot().source_priority
    recommendation = recommend_strategy(weather, priority)
    return {
        **recommendation.to_dict(),
        "current_priority": priority.value,
        "differs": recommendation.differs_from(priority),
    }


# ── Session / admin ──────────────────────────────────

@router.get("/capabilities")
async def capabilities(request: Request) -> dict:
    role = current_role(request)
    return {"role": role.value, "capabilities": capabilities_of(role)}


@router.get("/logs")
async def logs(request: Request, limit: int = 200, level: str | None = None):
    denied = deny_unless(request, Capability.VIEW_ADMIN)
    if denied:
        return denied
    return {"records": log_buffer.get_records(limit=limit, level=level)}


@router.get("/status")
async def status(request: Request) -> dict:
    loop = request.app.state.simulation
    state = loop.state
    return {
        "running": state.is_running,
        "tick_count": state.tick_count,
        "last_tick_at": state.last_tick_at.isoformat() if state.last_tick_at else None,
        "last_tick_ms": round(state.last_tick_ms, 3),
        "tick_interval_seconds": request.app.state.config.simulation.tick_interval_seconds,
        "override": asdict(loop.weather_override) if loop.weather_override else None,
    }
