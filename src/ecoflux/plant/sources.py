"""Solar and wind source models."""

from __future__ import annotations

from dataclasses import dataclass

from ecoflux.config.schema import SimulationConfig, SourceBandsConfig
from ecoflux.plant.drift import DriftGenerator
from ecoflux.plant.telemetry import SourceReading


@dataclass(frozen=True)
class SourceModel:
    """DC renewable source: drifting voltage, cut-in gated current.

    Current only flows while voltage is strictly above ``cut_in_voltage``.
    Power is voltage times current and accumulates into ``energy_today``.
    """

    name: str
    bands: SourceBandsConfig
    cut_in_voltage: float
    dt_scale: float

    def step(
        self,
        previous: SourceReading,
        drift: DriftGenerator,
        *,
        disabled: bool = False,
        voltage: float | None = None,
    ) -> SourceReading:
        """Advance one tick.

        Args:
            previous: Reading from the previous tick.
            drift: Shared random-walk generator.
            disabled: Source isolated by an operator control (brake, shutdown).
            voltage: Pins the voltage for this tick instead of drifting it.
        """
        if voltage is None:
            new_voltage = drift.drift_band(previous.voltage, self.bands.voltage)
        else:
            if voltage < 0:
                raise ValueError(f"{self.name} voltage override must be >= 0, got {voltage}")
            new_voltage = voltage

        if disabled or new_voltage <= self.cut_in_voltage:
            new_current = 0.0
        else:
            new_current = drift.drift_band(previous.current, self.bands.current)

        power = new_voltage * new_current
        return SourceReading(
            voltage=new_voltage,
            current=new_current,
            power=power,
            energy_today=previous.energy_today + power * self.dt_scale,
        )


def solar_model(config: SimulationConfig) -> SourceModel:
    return SourceModel("solar", config.solar, config.cut_in_voltage, config.dt_scale)


def wind_model(config: SimulationConfig) -> SourceModel:
    return SourceModel("wind", config.wind, config.cut_in_voltage, config.dt_scale)
