"""Simulated microgrid plant: drift, sources, loads, energy balance, snapshots."""

from ecoflux.plant.simulator import WeatherOverride, advance_tick, initial_snapshot
from ecoflux.plant.telemetry import TelemetrySnapshot

__all__ = ["TelemetrySnapshot", "WeatherOverride", "advance_tick", "initial_snapshot"]
