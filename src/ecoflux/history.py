"""Bounded rolling window of recent readings for live charts."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import asdict, dataclass

from ecoflux.plant.telemetry import TelemetrySnapshot


@dataclass(frozen=True)
class HistoryPoint:
    time: str  # HH:MM:SS, 24h
    solar: float
    wind: float
    load: float
    soc: float
    grid: float  # + import, - export

    @classmethod
    def from_snapshot(cls, snapshot: TelemetrySnapshot) -> HistoryPoint:
        return cls(
            time=snapshot.timestamp.strftime("%H:%M:%S"),
            solar=round(snapshot.solar.power, 1),
            wind=round(snapshot.wind.power, 1),
            load=round(snapshot.loads.total_power),
            soc=round(snapshot.battery.soc, 1),
            grid=round(snapshot.grid.power, 1),
        )


class RollingHistory:
    """Keeps the last *window_size* points; older points fall off."""

    def __init__(self, window_size: int = 30) -> None:
        self._points: deque[HistoryPoint] = deque(maxlen=window_size)
        self._lock = threading.Lock()

    def record(self, snapshot: TelemetrySnapshot) -> HistoryPoint:
        point = HistoryPoint.from_snapshot(snapshot)
        with self._lock:
            self._points.append(point)
        return point

    def points(self) -> list[dict]:
        """Oldest first, ready for charting."""
        with self._lock:
            return [asdict(p) for p in self._points]

    def __len__(self) -> int:
        with self._lock:
            return len(self._points)
