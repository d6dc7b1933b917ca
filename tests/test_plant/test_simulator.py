"""Tests for one-tick plant simulation and snapshot assembly."""

from __future__ import annotations

from dataclasses import FrozenInstanceError, replace
from datetime import datetime, timezone

import pytest

from ecoflux.config.schema import AppConfig
from ecoflux.control.state import ControlState, SourcePriority
from ecoflux.plant.drift import DriftGenerator
from ecoflux.plant.simulator import (
    WeatherOverride,
    advance_tick,
    grid_status_from_controls,
    initial_snapshot,
    system_flags_from_controls,
)
from ecoflux.plant.telemetry import ActiveSource, GridStatus, TelemetrySnapshot

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _run(config: AppConfig, ticks: int, controls: ControlState | None = None, seed: int = 11):
    drift = DriftGenerator.seeded(seed)
    snapshot = initial_snapshot(NOW)
    out = []
    for _ in range(ticks):
        snapshot = advance_tick(snapshot, controls or ControlState(), drift=drift, config=config, now=NOW)
        out.append(snapshot)
    return out


class TestInvariants:
    def test_invariants_hold_every_tick(self, config: AppConfig) -> None:
        previous = initial_snapshot(NOW)
        for snap in _run(config, 3000):
            assert 0 <= snap.battery.soc <= 100
            assert abs(snap.battery.power) <= config.battery.max_charge_rate_w
            b = snap.loads.breakdown
            assert snap.loads.total_power == b.critical + b.hvac + b.lighting + b.aux
            assert abs(snap.balance_error_w) < 1e-6
            assert snap.solar.energy_today >= previous.solar.energy_today
            assert snap.wind.energy_today >= previous.wind.energy_today
            assert snap.grid.energy_import_today >= previous.grid.energy_import_today
            assert snap.grid.energy_export_today >= previous.grid.energy_export_today
            previous = snap

    def test_initial_snapshot_is_balanced(self) -> None:
        assert abs(initial_snapshot(NOW).balance_error_w) < 1e-9

    def test_same_seed_same_run(self, config: AppConfig) -> None:
        a = [s.to_dict() for s in _run(config, 50, seed=5)]
        b = [s.to_dict() for s in _run(config, 50, seed=5)]
        assert a == b

    def test_snapshot_is_immutable(self, config: AppConfig) -> None:
        snap = _run(config, 1)[0]
        with pytest.raises(FrozenInstanceError):
            snap.battery = snap.battery  # type: ignore[misc]

    def test_previous_snapshot_untouched(self, config: AppConfig) -> None:
        start = initial_snapshot(NOW)
        before = start.to_dict()
        advance_tick(start, ControlState(), drift=DriftGenerator.seeded(1), config=config, now=NOW)
        assert start.to_dict() == before


class TestScenarios:
    def test_solar_below_cut_in(self, config: AppConfig) -> None:
        snap = advance_tick(
            initial_snapshot(NOW),
            ControlState(),
            WeatherOverride(solar_voltage=3.0),
            drift=DriftGenerator.seeded(2),
            config=config,
            now=NOW,
        )
        assert snap.solar.voltage == 3.0
        assert snap.solar.current == 0.0
        assert snap.solar.power == 0.0

    def test_wind_brake_stops_wind(self, config: AppConfig) -> None:
        for snap in _run(config, 20, ControlState(wind_brake=True)):
            assert snap.wind.power == 0.0

    def test_emergency_shutdown_isolates_sources(self, config: AppConfig) -> None:
        controls = ControlState(emergency_shutdown=True)
        for snap in _run(config, 20, controls):
            assert snap.generation_w == 0.0
            assert snap.system_flags.fault_detected
            assert snap.grid.status is GridStatus.FAULT
            assert abs(snap.balance_error_w) < 1e-6

    def test_inverter_off_zeroes_ac_voltage(self, config: AppConfig) -> None:
        snap = _run(config, 1, ControlState(inverter_on=False))[0]
        assert snap.ac_output.voltage == 0.0
        assert snap.ac_output.power == snap.loads.total_power

    def test_load_off_zeroes_ac_current_and_power(self, config: AppConfig) -> None:
        snap = _run(config, 1, ControlState(load_on=False))[0]
        assert snap.ac_output.current == 0.0
        assert snap.ac_output.power == 0.0
        assert snap.ac_output.voltage > 0
        assert snap.loads.total_power > 0

    def test_deficit_scenario_through_tick(self, config: AppConfig) -> None:
        start = initial_snapshot(NOW)
        start = replace(start, battery=replace(start.battery, soc=50.0))
        snap = advance_tick(
            start,
            ControlState(wind_brake=True),
            WeatherOverride(solar_voltage=0.0),
            drift=DriftGenerator.seeded(3),
            config=config,
            now=NOW,
        )
        # ~800 W load, no generation: battery at its limit, grid covers the rest
        assert snap.battery.power == -500
        assert snap.grid.power == pytest.approx(snap.loads.total_power - 500)
        assert snap.battery.soc < 50
        assert snap.battery.current == pytest.approx(-500 / 12)


class TestControlMapping:
    def test_auto_priority_is_hybrid(self) -> None:
        assert system_flags_from_controls(ControlState()).active_source is ActiveSource.HYBRID

    def test_explicit_priority_passes_through(self) -> None:
        flags = system_flags_from_controls(ControlState(source_priority=SourcePriority.WIND))
        assert flags.active_source is ActiveSource.WIND

    def test_grid_status(self) -> None:
        assert grid_status_from_controls(ControlState()) is GridStatus.CONNECTED
        assert grid_status_from_controls(ControlState(grid_tie_enabled=False)) is GridStatus.ISLANDED
        assert grid_status_from_controls(
            ControlState(grid_tie_enabled=False, emergency_shutdown=True)
        ) is GridStatus.FAULT


class TestSnapshot:
    def test_daily_reset(self, config: AppConfig) -> None:
        snap = _run(config, 5)[-1].with_daily_counters_reset()
        assert snap.solar.energy_today == 0
        assert snap.wind.energy_today == 0
        assert snap.grid.energy_import_today == 0
        assert snap.grid.energy_export_today == 0

    def test_to_dict_is_json_ready(self, config: AppConfig) -> None:
        data = _run(config, 1)[0].to_dict()
        assert data["battery"]["status"] in {"CHARGING", "DISCHARGING", "IDLE"}
        assert data["grid"]["status"] == "CONNECTED"
        assert data["system_flags"]["active_source"] == "HYBRID"
        assert data["timestamp"] == NOW.isoformat()
        assert set(data["loads"]["breakdown"]) == {"critical", "hvac", "lighting", "aux"}

    def test_snapshot_type(self, config: AppConfig) -> None:
        assert isinstance(_run(config, 1)[0], TelemetrySnapshot)
