"""Run the plant simulator without the dashboard and print JSON lines."""

from __future__ import annotations

import argparse
import asyncio
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

from ecoflux.config.manager import ConfigManager
from ecoflux.control.loop import SimulationLoop
from ecoflux.control.state import ControlState, ControlStore, SourcePriority
from ecoflux.logging.structured import setup_logging


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--ticks", type=int, default=60)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", default="config.yaml")
    parser.add_argument("--defaults", default="config.defaults.yaml")
    parser.add_argument("--priority", choices=[p.value for p in SourcePriority], default="AUTO")
    parser.add_argument("--wind-brake", action="store_true")
    parser.add_argument("--log-level", default="WARNING")
    return parser.parse_args()


async def _run(args: argparse.Namespace) -> None:
    manager = ConfigManager(defaults_path=Path(args.defaults), user_path=Path(args.config))
    config = manager.load()
    if args.seed is not None:
        config.simulation.seed = args.seed

    controls = ControlStore(ControlState(
        source_priority=SourcePriority(args.priority),
        wind_brake=args.wind_brake,
    ))
    loop = SimulationLoop(config, controls)

    # Simulated clock: one tick interval per step, no wall-clock sleeping
    start = datetime.now(timezone.utc)
    step = timedelta(seconds=config.simulation.tick_interval_seconds)
    for i in range(args.ticks):
        snapshot = await loop.tick_once(now=start + step * (i + 1))
        print(json.dumps(snapshot.to_dict()))


def main() -> None:
    args = parse_args()
    setup_logging(level=args.log_level, fmt="console")
    asyncio.run(_run(args))


if __name__ == "__main__":
    main()
