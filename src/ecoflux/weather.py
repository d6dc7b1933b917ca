"""Current weather and a short daily forecast for the strategy advisor.

There is no live weather feed; conditions come from configuration and the
daily outlook is drawn from a seedable generator.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, replace
from datetime import date, timedelta
from enum import Enum

import numpy as np

from ecoflux.config.schema import WeatherConfig

logger = logging.getLogger(__name__)


class Condition(str, Enum):
    SUNNY = "SUNNY"
    CLOUDY = "CLOUDY"
    WINDY = "WINDY"
    RAINY = "RAINY"


@dataclass(frozen=True)
class ForecastDay:
    day: str  # Mon..Sun
    condition: Condition
    temp_high_c: int
    temp_low_c: int
    wind_speed_ms: int
    irradiance_wm2: int


@dataclass(frozen=True)
class Weather:
    temp_c: float
    cloud_cover_pct: float
    wind_speed_ms: float
    irradiance_wm2: float = 0.0
    rain_probability_pct: float = 0.0
    condition: Condition = Condition.CLOUDY
    forecast: tuple[ForecastDay, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return asdict(self)


def _pick_condition(rng: np.random.Generator) -> Condition:
    # Each check is an independent draw, so later conditions are rarer
    if rng.random() > 0.7:
        return Condition.CLOUDY
    if rng.random() > 0.8:
        return Condition.RAINY
    if rng.random() > 0.85:
        return Condition.WINDY
    return Condition.SUNNY


def build_forecast(rng: np.random.Generator, start: date, days: int = 7) -> tuple[ForecastDay, ...]:
    out = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        out.append(ForecastDay(
            day=day.strftime("%a"),
            condition=_pick_condition(rng),
            temp_high_c=int(rng.integers(22, 30)),
            temp_low_c=int(rng.integers(15, 20)),
            wind_speed_ms=int(rng.integers(3, 11)),
            irradiance_wm2=int(rng.integers(400, 800)),
        ))
    return tuple(out)


@dataclass(frozen=True)
class WeatherHistoryDay:
    day: int  # 1 = oldest
    avg_wind_ms: int
    peak_wind_ms: int
    irradiance_wm2: int


def build_weather_history(rng: np.random.Generator, days: int = 30) -> tuple[WeatherHistoryDay, ...]:
    """Daily wind and irradiance for the trailing *days*, oldest first."""
    return tuple(
        WeatherHistoryDay(
            day=i + 1,
            avg_wind_ms=int(rng.integers(2, 12)),
            peak_wind_ms=int(rng.integers(5, 20)),
            irradiance_wm2=int(rng.integers(200, 1000)),
        )
        for i in range(days)
    )


class WeatherProvider:
    """Holds the current weather; operators or tests may replace conditions."""

    def __init__(self, config: WeatherConfig, today: date | None = None) -> None:
        self._config = config
        self._rng = np.random.default_rng(config.seed)
        self._forecast_start = today or date.today()
        self._current = Weather(
            temp_c=config.temp_c,
            cloud_cover_pct=config.cloud_cover_pct,
            wind_speed_ms=config.wind_speed_ms,
            irradiance_wm2=config.irradiance_wm2,
            rain_probability_pct=config.rain_probability_pct,
            forecast=build_forecast(self._rng, self._forecast_start, config.forecast_days),
        )
        self._history = build_weather_history(self._rng, config.history_days)

    @property
    def current(self) -> Weather:
        return self._current

    @property
    def history(self) -> tuple[WeatherHistoryDay, ...]:
        return self._history

    @property
    def forecast_start(self) -> date:
        return self._forecast_start

    def update(self, **conditions: float) -> Weather:
        """Replace some current conditions, keeping the forecast."""
        self._current = replace(self._current, **conditions)
        logger.info(
            "Weather updated: cloud=%.0f%% wind=%.1fm/s",
            self._current.cloud_cover_pct, self._current.wind_speed_ms,
        )
        return self._current

    def refresh_forecast(self, today: date | None = None) -> Weather:
        """Redraw the outlook so it starts on *today*."""
        self._forecast_start = today or date.today()
        forecast = build_forecast(self._rng, self._forecast_start, self._config.forecast_days)
        self._current = replace(self._current, forecast=forecast)
        logger.info("Forecast refreshed from %s", self._forecast_start)
        return self._current
