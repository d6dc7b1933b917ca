"""One-tick plant simulation: sources → loads → energy balance → snapshot.

``advance_tick`` is a pure function of its inputs plus the injected drift
generator. The caller owns the previous snapshot and replaces it with the
returned one.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from ecoflux.config.schema import AppConfig, SimulationConfig
from ecoflux.control.state import ControlState, SourcePriority
from ecoflux.plant.balance import BalanceResult, balance_energy
from ecoflux.plant.drift import DriftGenerator
from ecoflux.plant.loads import step_loads
from ecoflux.plant.sources import solar_model, wind_model
from ecoflux.plant.telemetry import (
    ACOutput,
    ActiveSource,
    BatteryReading,
    BatteryStatus,
    GridReading,
    GridStatus,
    LoadBreakdown,
    LoadReading,
    SourceReading,
    SystemFlags,
    TelemetrySnapshot,
)


@dataclass(frozen=True)
class WeatherOverride:
    """Pins renewable source voltages for one tick (None = let it drift)."""

    solar_voltage: float | None = None
    wind_voltage: float | None = None


def initial_snapshot(now: datetime | None = None) -> TelemetrySnapshot:
    """Plant state at power-on, before the first tick."""
    loads = LoadReading.from_breakdown(
        LoadBreakdown(critical=300.0, hvac=300.0, lighting=100.0, aux=100.0)
    )
    solar = SourceReading(voltage=18.5, current=4.2, power=18.5 * 4.2, energy_today=450.2)
    wind = SourceReading(voltage=12.1, current=2.5, power=12.1 * 2.5, energy_today=210.5)
    # Battery idle, so the grid covers the whole initial shortfall
    grid_power = loads.total_power - solar.power - wind.power
    return TelemetrySnapshot(
        solar=solar,
        wind=wind,
        battery=BatteryReading(
            voltage=12.8,
            current=0.0,
            power=0.0,
            soc=85.0,
            temperature=29.0,
            health=97.0,
            status=BatteryStatus.IDLE,
        ),
        grid=GridReading(
            status=GridStatus.CONNECTED,
            voltage=230.0,
            current=abs(grid_power) / 230.0,
            power=grid_power,
            energy_import_today=12.5,
            energy_export_today=8.2,
            frequency=50.0,
        ),
        loads=loads,
        ac_output=ACOutput(voltage=230.5, current=1.5, power=345.0, frequency=50.0, power_factor=0.96),
        system_flags=SystemFlags(),
        timestamp=now or datetime.now(timezone.utc),
    )


def system_flags_from_controls(controls: ControlState) -> SystemFlags:
    if controls.source_priority is SourcePriority.AUTO:
        active = ActiveSource.HYBRID
    else:
        active = ActiveSource(controls.source_priority.value)
    return SystemFlags(
        active_source=active,
        inverter_on=controls.inverter_on,
        load_on=controls.load_on,
        fault_detected=controls.emergency_shutdown,
    )


def grid_status_from_controls(controls: ControlState) -> GridStatus:
    """Reported grid status. Informational only: dispatch is unaffected."""
    if controls.emergency_shutdown:
        return GridStatus.FAULT
    if not controls.grid_tie_enabled:
        return GridStatus.ISLANDED
    return GridStatus.CONNECTED


def _battery_reading(
    previous: BatteryReading,
    balance: BalanceResult,
    drift: DriftGenerator,
    sim: SimulationConfig,
) -> BatteryReading:
    return BatteryReading(
        voltage=drift.drift_band(previous.voltage, sim.battery_voltage),
        current=balance.battery_power_w / sim.battery_nominal_voltage,
        power=balance.battery_power_w,
        soc=balance.soc,
        temperature=drift.drift_band(previous.temperature, sim.battery_temperature),
        health=sim.battery_health,
        status=balance.battery_status,
    )


def _grid_reading(
    previous: GridReading,
    balance: BalanceResult,
    status: GridStatus,
    drift: DriftGenerator,
    sim: SimulationConfig,
) -> GridReading:
    # Grid voltage/frequency wander around nominal rather than accumulating
    return GridReading(
        status=status,
        voltage=drift.drift_band(sim.grid_nominal_voltage, sim.grid_voltage),
        current=abs(balance.grid_power_w) / sim.grid_nominal_voltage,
        power=balance.grid_power_w,
        energy_import_today=previous.energy_import_today + balance.grid_import_wh,
        energy_export_today=previous.energy_export_today + balance.grid_export_wh,
        frequency=drift.drift_band(sim.grid_nominal_frequency, sim.grid_frequency),
    )


def _ac_output(
    previous: ACOutput,
    loads: LoadReading,
    flags: SystemFlags,
    drift: DriftGenerator,
    sim: SimulationConfig,
) -> ACOutput:
    voltage = drift.drift_band(previous.voltage or sim.ac_nominal_voltage, sim.ac_voltage)
    return ACOutput(
        voltage=voltage if flags.inverter_on else 0.0,
        current=loads.total_power / sim.ac_nominal_voltage if flags.load_on else 0.0,
        power=loads.total_power if flags.load_on else 0.0,
        frequency=drift.drift_band(previous.frequency, sim.ac_frequency),
        power_factor=sim.power_factor,
    )


def assemble_snapshot(
    previous: TelemetrySnapshot,
    solar: SourceReading,
    wind: SourceReading,
    loads: LoadReading,
    balance: BalanceResult,
    controls: ControlState,
    drift: DriftGenerator,
    sim: SimulationConfig,
    now: datetime,
) -> TelemetrySnapshot:
    """Combine this tick's model outputs into one immutable snapshot."""
    flags = system_flags_from_controls(controls)
    return TelemetrySnapshot(
        solar=solar,
        wind=wind,
        battery=_battery_reading(previous.battery, balance, drift, sim),
        grid=_grid_reading(previous.grid, balance, grid_status_from_controls(controls), drift, sim),
        loads=loads,
        ac_output=_ac_output(previous.ac_output, loads, flags, drift, sim),
        system_flags=flags,
        timestamp=now,
    )


def advance_tick(
    previous: TelemetrySnapshot,
    controls: ControlState,
    weather_override: WeatherOverride | None = None,
    *,
    drift: DriftGenerator,
    config: AppConfig,
    now: datetime | None = None,
) -> TelemetrySnapshot:
    """Produce the snapshot that follows *previous*.

    Wind is isolated while the brake is engaged; both renewables are isolated
    during emergency shutdown. Loads keep drifting regardless of load_on,
    which only gates what the AC output reports.
    """
    sim = config.simulation
    override = weather_override or WeatherOverride()

    solar = solar_model(sim).step(
        previous.solar,
        drift,
        disabled=controls.emergency_shutdown,
        voltage=override.solar_voltage,
    )
    wind = wind_model(sim).step(
        previous.wind,
        drift,
        disabled=controls.emergency_shutdown or controls.wind_brake,
        voltage=override.wind_voltage,
    )
    loads = step_loads(previous.loads, drift, config.loads)

    balance = balance_energy(
        generation_w=solar.power + wind.power,
        load_w=loads.total_power,
        soc=previous.battery.soc,
        limits=config.battery,
        dt_scale=sim.dt_scale,
        previous_status=previous.battery.status,
    )

    return assemble_snapshot(
        previous,
        solar,
        wind,
        loads,
        balance,
        controls,
        drift,
        sim,
        now or datetime.now(timezone.utc),
    )
