"""Load model: four independently drifting categories."""

from __future__ import annotations

from ecoflux.config.schema import LoadsConfig
from ecoflux.plant.drift import DriftGenerator
from ecoflux.plant.telemetry import LoadBreakdown, LoadReading


def step_loads(previous: LoadReading, drift: DriftGenerator, config: LoadsConfig) -> LoadReading:
    """Drift each category within its band; the total is always re-summed."""
    prev = previous.breakdown
    breakdown = LoadBreakdown(
        critical=drift.drift_band(prev.critical, config.critical),
        hvac=drift.drift_band(prev.hvac, config.hvac),  # wide band models compressor cycling
        lighting=drift.drift_band(prev.lighting, config.lighting),
        aux=drift.drift_band(prev.aux, config.aux),
    )
    return LoadReading.from_breakdown(breakdown)
