"""Shared test fixtures for EcoFlux."""

from __future__ import annotations

from pathlib import Path

import pytest

from ecoflux.config.manager import ConfigManager
from ecoflux.config.schema import AppConfig
from ecoflux.control.loop import SimulationLoop
from ecoflux.control.state import ControlStore
from ecoflux.plant.drift import DriftGenerator
from ecoflux.weather import WeatherProvider


@pytest.fixture
def config() -> AppConfig:
    """Provide a default test configuration."""
    return AppConfig()


@pytest.fixture
def config_manager(tmp_path: Path) -> ConfigManager:
    """Provide a config manager with test paths."""
    defaults = tmp_path / "config.defaults.yaml"
    defaults.write_text("simulation:\n  seed: 7\n")
    user = tmp_path / "config.yaml"
    mgr = ConfigManager(defaults_path=defaults, user_path=user)
    mgr.load()
    return mgr


@pytest.fixture
def drift() -> DriftGenerator:
    return DriftGenerator.seeded(1234)


@pytest.fixture
def controls() -> ControlStore:
    return ControlStore()


@pytest.fixture
def simulation(config: AppConfig, controls: ControlStore) -> SimulationLoop:
    return SimulationLoop(config, controls, drift=DriftGenerator.seeded(42))


@pytest.fixture
def weather(config: AppConfig) -> WeatherProvider:
    return WeatherProvider(config.weather.model_copy(update={"seed": 3}))
