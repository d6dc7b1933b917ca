"""Immutable telemetry snapshot produced once per simulation tick.

Sign conventions:
- battery power/current: positive = charging, negative = discharging
- grid power: positive = importing, negative = exporting
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum


class BatteryStatus(str, Enum):
    CHARGING = "CHARGING"
    DISCHARGING = "DISCHARGING"
    IDLE = "IDLE"


class GridStatus(str, Enum):
    CONNECTED = "CONNECTED"
    ISLANDED = "ISLANDED"
    FAULT = "FAULT"


class ActiveSource(str, Enum):
    SOLAR = "SOLAR"
    WIND = "WIND"
    HYBRID = "HYBRID"
    GRID = "GRID"
    BATTERY = "BATTERY"


@dataclass(frozen=True)
class SourceReading:
    """DC-side reading for one renewable source."""

    voltage: float
    current: float
    power: float
    energy_today: float


@dataclass(frozen=True)
class BatteryReading:
    voltage: float
    current: float
    power: float
    soc: float  # 0-100
    temperature: float
    health: float
    status: BatteryStatus


@dataclass(frozen=True)
class GridReading:
    status: GridStatus
    voltage: float
    current: float
    power: float
    energy_import_today: float
    energy_export_today: float
    frequency: float


@dataclass(frozen=True)
class LoadBreakdown:
    critical: float  # servers, PLC
    hvac: float
    lighting: float
    aux: float

    @property
    def total(self) -> float:
        return self.critical + self.hvac + self.lighting + self.aux


@dataclass(frozen=True)
class LoadReading:
    total_power: float
    breakdown: LoadBreakdown

    @classmethod
    def from_breakdown(cls, breakdown: LoadBreakdown) -> LoadReading:
        return cls(total_power=breakdown.total, breakdown=breakdown)


@dataclass(frozen=True)
class ACOutput:
    voltage: float
    current: float
    power: float
    frequency: float
    power_factor: float


@dataclass(frozen=True)
class SystemFlags:
    active_source: ActiveSource = ActiveSource.HYBRID
    inverter_on: bool = True
    load_on: bool = True
    fault_detected: bool = False


@dataclass(frozen=True)
class TelemetrySnapshot:
    """Complete plant state for one tick. Superseded, never mutated."""

    solar: SourceReading
    wind: SourceReading
    battery: BatteryReading
    grid: GridReading
    loads: LoadReading
    ac_output: ACOutput
    system_flags: SystemFlags
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def generation_w(self) -> float:
        return self.solar.power + self.wind.power

    @property
    def balance_error_w(self) -> float:
        """Supply minus demand: generation + grid import - load - battery charging."""
        return (
            self.solar.power
            + self.wind.power
            + self.grid.power
            - self.loads.total_power
            - self.battery.power
        )

    def with_daily_counters_reset(self) -> TelemetrySnapshot:
        """Copy with every energy-today counter zeroed (day rollover)."""
        return replace(
            self,
            solar=replace(self.solar, energy_today=0.0),
            wind=replace(self.wind, energy_today=0.0),
            grid=replace(self.grid, energy_import_today=0.0, energy_export_today=0.0),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["battery"]["status"] = self.battery.status.value
        data["grid"]["status"] = self.grid.status.value
        data["system_flags"]["active_source"] = self.system_flags.active_source.value
        data["timestamp"] = self.timestamp.isoformat()
        return data
