"""Operator control state and its thread-safe store.

``ControlState`` is immutable; every change builds and validates a new one.
The simulation loop reads a single ``ControlStore.snapshot()`` at tick start,
so a tick never sees a half-applied change.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ecoflux.access import Role, capability_for_control, require_capability

logger = logging.getLogger(__name__)


class SourcePriority(str, Enum):
    SOLAR = "SOLAR"
    WIND = "WIND"
    AUTO = "AUTO"


class ControlState(BaseModel):
    """Operator intents. Every field is required-or-defaulted; unknown keys fail."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    load_on: bool = True
    inverter_on: bool = True
    source_priority: SourcePriority = SourcePriority.AUTO
    battery_protection: bool = True
    solar_pan: float = Field(45.0, ge=0.0, le=360.0)  # degrees azimuth
    solar_tilt: float = Field(30.0, ge=0.0, le=90.0)  # degrees from horizontal
    wind_brake: bool = False
    emergency_shutdown: bool = False
    grid_tie_enabled: bool = True


class ControlLockedError(Exception):
    """Raised when a control is changed while emergency shutdown is latched."""


ControlListener = Callable[[ControlState, ControlState], None]


class ControlStore:
    """Holds the current ControlState and applies validated, role-checked changes."""

    def __init__(self, initial: ControlState | None = None) -> None:
        self._state = initial or ControlState()
        self._lock = threading.Lock()
        self._listeners: list[ControlListener] = []

    def snapshot(self) -> ControlState:
        """Current state; safe to hold for a whole tick since it is immutable."""
        with self._lock:
            return self._state

    def subscribe(self, listener: ControlListener) -> None:
        """Register ``listener(old, new)``, called after each committed change."""
        with self._lock:
            self._listeners.append(listener)

    def apply(self, field: str, value: Any, role: Role) -> ControlState:
        """Change a single control. See :meth:`update`."""
        return self.update({field: value}, role)

    def update(self, changes: Mapping[str, Any], role: Role) -> ControlState:
        """Apply several control changes as one atomic replacement.

        Raises:
            KeyError: A field name is not a control.
            PermissionDeniedError: ``role`` may not change one of the fields.
            ControlLockedError: Emergency shutdown is active and a field other
                than ``emergency_shutdown`` is being changed.
            pydantic.ValidationError: A value is out of range or the wrong type.
        """
        for name in changes:
            if name not in ControlState.model_fields:
                raise KeyError(f"Unknown control: {name}")
            require_capability(role, capability_for_control(name))

        with self._lock:
            old = self._state
            if old.emergency_shutdown and set(changes) - {"emergency_shutdown"}:
                raise ControlLockedError("Controls are locked while emergency shutdown is active")
            new = ControlState.model_validate({**old.model_dump(), **changes})
            self._state = new
            listeners = list(self._listeners)

        for name, value in changes.items():
            logger.info("Control set: %s -> %r (role=%s)", name, value, role.value)
        if new.emergency_shutdown and not old.emergency_shutdown:
            logger.warning("Emergency shutdown ACTIVATED (role=%s)", role.value)

        for listener in listeners:
            try:
                listener(old, new)
            except Exception:
                logger.exception("Control listener error")
        return new
