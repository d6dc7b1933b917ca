"""EcoFlux application entry point and lifecycle orchestrator.

Startup sequence:
  config → logging → control store → weather → simulation loop → dashboard
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import secrets
import signal
import sys
from datetime import datetime, timezone
from pathlib import Path

from ecoflux import __version__
from ecoflux.config.manager import ConfigManager
from ecoflux.config.schema import AppConfig
from ecoflux.control.loop import SimulationLoop
from ecoflux.control.state import ControlStore
from ecoflux.logging.structured import setup_logging
from ecoflux.plant.telemetry import TelemetrySnapshot
from ecoflux.weather import WeatherProvider

logger = logging.getLogger(__name__)


class Application:
    """Wires the simulator, control store and dashboard together."""

    def __init__(self, config: AppConfig, config_manager: ConfigManager | None = None) -> None:
        self.config = config
        self.config_manager = config_manager
        self.controls = ControlStore()
        self.weather = WeatherProvider(config.weather, today=datetime.now(timezone.utc).date())
        self.simulation = SimulationLoop(config, self.controls)
        self._running = False
        self._tasks: list[asyncio.Task] = []
        self._server = None

        self.controls.subscribe(self._on_control_change)
        self.simulation.on_snapshot(self._roll_forecast)

    def _on_control_change(self, old, new) -> None:
        if new.emergency_shutdown and not old.emergency_shutdown:
            self.simulation.notifications.add("CRITICAL: EMERGENCY SHUTDOWN ACTIVE")

    async def _roll_forecast(self, snapshot: TelemetrySnapshot) -> None:
        """Start the outlook on the simulated day once the date changes."""
        day = snapshot.timestamp.date()
        if day != self.weather.forecast_start:
            self.weather.refresh_forecast(today=day)

    def _ensure_session_secret(self) -> None:
        auth_cfg = self.config.dashboard.auth
        if not auth_cfg.users or auth_cfg.session_secret:
            return
        generated = secrets.token_hex(32)
        if self.config_manager is not None:
            self.config = self.config_manager.save_user_config(
                {"dashboard": {"auth": {"session_secret": generated}}}
            )
            logger.info("Generated and persisted session secret for dashboard auth")
        else:
            auth_cfg.session_secret = generated
            logger.info("Generated in-memory session secret for dashboard auth")

    async def start(self) -> None:
        """Start the simulation loop and serve the dashboard until stopped."""
        logger.info("Starting EcoFlux v%s", __version__)
        self._running = True
        self._ensure_session_secret()

        self._tasks.append(asyncio.create_task(self.simulation.run(), name="simulation"))

        from ecoflux.dashboard.app import create_app

        app = create_app(self.config, self.simulation, self.weather, self.config_manager)
        app.state.application = self

        import uvicorn

        uvi_config = uvicorn.Config(
            app,
            host=self.config.dashboard.host,
            port=self.config.dashboard.port,
            log_level="warning",
        )
        server = uvicorn.Server(uvi_config)
        # Signal handling stays in main() so Ctrl+C behaviour is predictable
        server.install_signal_handlers = lambda: None
        self._server = server

        logger.info(
            "Dashboard available at http://%s:%d",
            self.config.dashboard.host,
            self.config.dashboard.port,
        )
        await server.serve()

    async def stop(self) -> None:
        """Stop the server and the simulation loop."""
        if not self._running:
            return
        logger.info("Shutting down EcoFlux")
        self._running = False

        if self._server is not None:
            self._server.should_exit = True
        self.simulation.stop()

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        self._server = None
        logger.info("Shutdown complete")

    @property
    def running(self) -> bool:
        return self._running


async def _serve(app: Application) -> None:
    """Run *app* until SIGINT/SIGTERM; a second signal exits immediately."""
    loop = asyncio.get_running_loop()
    signals_seen = 0

    def _on_signal() -> None:
        nonlocal signals_seen
        signals_seen += 1
        if signals_seen > 1:
            os._exit(130)
        logger.info("Stop requested")
        loop.create_task(app.stop())

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _on_signal)

    try:
        await app.start()
    finally:
        await app.stop()


def main() -> None:
    """Entry point for the ``ecoflux`` console script."""
    config_manager = ConfigManager(Path("config.defaults.yaml"), Path("config.yaml"))
    config = config_manager.load()

    setup_logging(
        level=config.logging.level,
        fmt=config.logging.format,
        log_file=config.logging.file,
    )

    # Windows has no loop signal handlers; Ctrl+C arrives as KeyboardInterrupt
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(_serve(Application(config, config_manager)))


if __name__ == "__main__":
    main()
