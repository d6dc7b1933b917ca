"""Energy balance engine: battery-first dispatch with grid as the residual.

Each tick the imbalance between generation and load is routed:
1. Surplus charges the battery (below the SOC ceiling, up to the charge rate).
2. Deficit discharges the battery (above the SOC floor, up to the discharge rate).
3. Whatever the battery cannot take or give is settled by the grid.

Supply always equals demand afterwards:
``generation + grid_power == load + battery_power``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from ecoflux.config.schema import BatteryConfig
from ecoflux.plant.telemetry import BatteryStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceResult:
    """Outcome of one dispatch pass."""

    net_power_w: float  # generation - load, before dispatch
    battery_power_w: float  # + charging, - discharging
    grid_power_w: float  # + import, - export
    soc: float  # integrated SOC after this tick
    battery_status: BatteryStatus
    grid_import_wh: float  # increments for the energy-today counters
    grid_export_wh: float


def _require_power(name: str, value: float) -> None:
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise ValueError(f"{name} must be a finite, non-negative power, got {value}")


def battery_status_for(
    battery_power_w: float,
    limits: BatteryConfig,
    previous: BatteryStatus | None = None,
) -> BatteryStatus:
    """Label battery flow with a dead-band around zero.

    With ``limits.idle_exit_w`` set, leaving IDLE needs a larger flow than the
    dead-band, and an active label is held until flow falls back into it.
    """
    magnitude = abs(battery_power_w)
    if magnitude <= limits.idle_deadband_w:
        return BatteryStatus.IDLE

    label = BatteryStatus.CHARGING if battery_power_w > 0 else BatteryStatus.DISCHARGING
    if limits.idle_exit_w is None or previous not in (None, BatteryStatus.IDLE):
        return label
    return label if magnitude > limits.idle_exit_w else BatteryStatus.IDLE


def balance_energy(
    generation_w: float,
    load_w: float,
    soc: float,
    limits: BatteryConfig,
    dt_scale: float,
    previous_status: BatteryStatus | None = None,
) -> BalanceResult:
    """Dispatch one tick's imbalance and integrate SOC and grid counters.

    Args:
        generation_w: Solar + wind power (W), finite and >= 0.
        load_w: Total load (W), finite and >= 0.
        soc: Battery state of charge before this tick (0-100).
        limits: Rate, SOC and dead-band limits.
        dt_scale: Tick-to-hour conversion for the energy counters.
        previous_status: Last tick's label, used only for hysteresis.

    Raises:
        ValueError: On NaN/negative power or SOC outside [0, 100].
    """
    _require_power("generation_w", generation_w)
    _require_power("load_w", load_w)
    if math.isnan(soc) or not 0.0 <= soc <= 100.0:
        raise ValueError(f"soc must be within [0, 100], got {soc}")

    net = generation_w - load_w
    remaining = net
    battery_power = 0.0

    if net > 0 and soc < limits.charge_ceiling_soc:
        battery_power = min(net, limits.max_charge_rate_w)
        remaining -= battery_power
    elif net < 0 and soc > limits.discharge_floor_soc:
        battery_power = max(net, -limits.max_discharge_rate_w)
        remaining -= battery_power

    grid_power = -remaining
    new_soc = min(max(soc + battery_power * limits.soc_integration_per_w, 0.0), 100.0)

    result = BalanceResult(
        net_power_w=net,
        battery_power_w=battery_power,
        grid_power_w=grid_power,
        soc=new_soc,
        battery_status=battery_status_for(battery_power, limits, previous_status),
        grid_import_wh=grid_power * dt_scale if grid_power > 0 else 0.0,
        grid_export_wh=-grid_power * dt_scale if grid_power < 0 else 0.0,
    )
    logger.debug(
        "Balance: net=%.1fW battery=%.1fW grid=%.1fW soc=%.2f->%.2f",
        net, battery_power, grid_power, soc, new_soc,
    )
    return result
