"""Async simulation loop. Advances the plant once per tick interval."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from ecoflux.alerts import NotificationFeed, evaluate_alerts
from ecoflux.config.schema import AppConfig
from ecoflux.control.state import ControlStore
from ecoflux.history import RollingHistory
from ecoflux.logging.context import log_context
from ecoflux.plant.drift import DriftGenerator
from ecoflux.plant.simulator import WeatherOverride, advance_tick, initial_snapshot
from ecoflux.plant.telemetry import TelemetrySnapshot

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[TelemetrySnapshot], Awaitable[None]]


@dataclass
class LoopState:
    """Snapshot of the simulation loop state."""

    tick_count: int = 0
    last_tick_at: datetime | None = None
    last_tick_ms: float = 0.0
    is_running: bool = False


class SimulationLoop:
    """Periodic driver for the plant simulator.

    Every tick:
    1. Take one atomic snapshot of the control store
    2. Roll over the daily counters if the date changed
    3. Advance the plant one step
    4. Record history and raise notifications
    5. Notify snapshot callbacks
    """

    def __init__(
        self,
        config: AppConfig,
        controls: ControlStore,
        drift: DriftGenerator | None = None,
        history: RollingHistory | None = None,
        notifications: NotificationFeed | None = None,
        snapshot: TelemetrySnapshot | None = None,
    ) -> None:
        self._config = config
        self._controls = controls
        self._drift = drift or DriftGenerator.seeded(config.simulation.seed)
        self._history = history or RollingHistory(config.history.window_size)
        self._notifications = notifications or NotificationFeed(
            config.alerts.notification_capacity
        )
        self._snapshot = snapshot or initial_snapshot()
        self._weather_override: WeatherOverride | None = None
        self._state = LoopState()
        self._stop_event = asyncio.Event()
        self._on_snapshot: list[SnapshotCallback] = []

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def snapshot(self) -> TelemetrySnapshot:
        return self._snapshot

    @property
    def history(self) -> RollingHistory:
        return self._history

    @property
    def notifications(self) -> NotificationFeed:
        return self._notifications

    @property
    def controls(self) -> ControlStore:
        return self._controls

    def on_snapshot(self, callback: SnapshotCallback) -> None:
        self._on_snapshot.append(callback)

    @property
    def weather_override(self) -> WeatherOverride | None:
        return self._weather_override

    def set_weather_override(self, override: WeatherOverride | None) -> None:
        """Pin source voltages from the next tick on; None resumes drift."""
        self._weather_override = override

    async def run(self) -> None:
        """Tick until :meth:`stop` is called."""
        self._state.is_running = True
        self._stop_event.clear()
        interval = self._config.simulation.tick_interval_seconds
        logger.info("Simulation loop starting (interval: %.2fs)", interval)

        try:
            while not self._stop_event.is_set():
                await self._tick()
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
                    break
                except asyncio.TimeoutError:
                    pass
        finally:
            self._state.is_running = False
            logger.info("Simulation loop stopped after %d ticks", self._state.tick_count)

    def stop(self) -> None:
        self._stop_event.set()

    async def tick_once(self, now: datetime | None = None) -> TelemetrySnapshot:
        """Execute a single tick outside the periodic schedule."""
        return await self._tick(now)

    async def _tick(self, now: datetime | None = None) -> TelemetrySnapshot:
        now = now or datetime.now(timezone.utc)
        self._state.tick_count += 1
        self._state.last_tick_at = now
        tick_start = time.monotonic()

        with log_context(tick=self._state.tick_count):
            controls = self._controls.snapshot()
            previous = self._snapshot
            if previous.timestamp.date() != now.date():
                logger.info("Day rollover %s -> %s: resetting energy counters",
                            previous.timestamp.date(), now.date())
                previous = previous.with_daily_counters_reset()

            snapshot = advance_tick(
                previous,
                controls,
                self._weather_override,
                drift=self._drift,
                config=self._config,
                now=now,
            )
            self._snapshot = snapshot
            self._history.record(snapshot)
            self._notifications.extend(evaluate_alerts(snapshot, controls, self._config.alerts))

            self._state.last_tick_ms = (time.monotonic() - tick_start) * 1000
            logger.debug(
                "Tick %d: solar=%.0fW wind=%.0fW load=%.0fW battery=%.0fW grid=%.0fW soc=%.1f%%",
                self._state.tick_count,
                snapshot.solar.power,
                snapshot.wind.power,
                snapshot.loads.total_power,
                snapshot.battery.power,
                snapshot.grid.power,
                snapshot.battery.soc,
            )

            for cb in self._on_snapshot:
                try:
                    await cb(snapshot)
                except Exception:
                    logger.exception("Snapshot callback error")
        return snapshot
