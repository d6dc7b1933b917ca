"""Alert rules evaluated on each snapshot, and the operator notification feed."""

from __future__ import annotations

import logging
import threading
from collections import deque

from ecoflux.config.schema import AlertsConfig
from ecoflux.control.state import ControlState
from ecoflux.plant.telemetry import GridStatus, TelemetrySnapshot

logger = logging.getLogger(__name__)

BATTERY_LOW = "CRITICAL: Battery Low (<{:.0f}%)"
AC_VOLTAGE_HIGH = "WARNING: AC Voltage High"
EMERGENCY_SHUTDOWN = "CRITICAL: EMERGENCY SHUTDOWN ACTIVE"
GRID_ISLANDED = "WARNING: Grid Island Mode"
GRID_FAULT = "CRITICAL: Grid Fault"


def evaluate_alerts(
    snapshot: TelemetrySnapshot,
    controls: ControlState,
    config: AlertsConfig,
) -> list[str]:
    """Return alert messages raised by this snapshot, most severe first."""
    alerts: list[str] = []
    if controls.emergency_shutdown:
        alerts.append(EMERGENCY_SHUTDOWN)
    if snapshot.battery.soc < config.low_soc_pct:
        alerts.append(BATTERY_LOW.format(config.low_soc_pct))
    if snapshot.grid.status is GridStatus.FAULT:
        alerts.append(GRID_FAULT)
    elif snapshot.grid.status is GridStatus.ISLANDED:
        alerts.append(GRID_ISLANDED)
    if snapshot.ac_output.voltage > config.ac_voltage_high_v:
        alerts.append(AC_VOLTAGE_HIGH)
    return alerts


class NotificationFeed:
    """Newest-first list of distinct messages, capped at *capacity*.

    A message already in the feed is not re-added, so a condition that
    persists across ticks appears once.
    """

    def __init__(self, capacity: int = 5) -> None:
        self._items: deque[str] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def add(self, message: str) -> bool:
        """Add *message*; returns False if it was already present."""
        with self._lock:
            if message in self._items:
                return False
            self._items.appendleft(message)
        logger.warning("Notification: %s", message)
        return True

    def extend(self, messages: list[str]) -> int:
        return sum(1 for m in messages if self.add(m))

    def items(self) -> list[str]:
        with self._lock:
            return list(self._items)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
