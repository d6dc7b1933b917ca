"""Weather-driven operating mode recommendation."""

from __future__ import annotations

from dataclasses import dataclass

from ecoflux.control.state import SourcePriority
from ecoflux.weather import Weather

HIGH_CLOUD_PCT = 60.0
STRONG_WIND_MS = 6.0
CLEAR_SKY_PCT = 30.0
LOW_WIND_MS = 4.0


@dataclass(frozen=True)
class EnergyStrategy:
    mode: SourcePriority
    reason: str

    def differs_from(self, priority: SourcePriority) -> bool:
        return self.mode is not priority

    def to_dict(self) -> dict:
        return {"mode": self.mode.value, "reason": self.reason}


def recommend_strategy(
    weather: Weather,
    current_priority: SourcePriority = SourcePriority.AUTO,
) -> EnergyStrategy:
    """Map cloud cover and wind speed to a recommended source priority.

    ``current_priority`` does not change the recommendation; callers compare
    against it with :meth:`EnergyStrategy.differs_from`.
    """
    if weather.cloud_cover_pct > HIGH_CLOUD_PCT and weather.wind_speed_ms > STRONG_WIND_MS:
        return EnergyStrategy(SourcePriority.WIND, "High cloud cover & strong wind")
    if weather.cloud_cover_pct < CLEAR_SKY_PCT and weather.wind_speed_ms < LOW_WIND_MS:
        return EnergyStrategy(SourcePriority.SOLAR, "Clear sky & low wind")
    return EnergyStrategy(SourcePriority.AUTO, "Balanced conditions")
