"""Role-based capability checks consulted by the dashboard layer.

The simulation core never imports this module; it only gates who may
change which control, and who may see admin views.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


class Capability(str, Enum):
    VIEW_TELEMETRY = "view_telemetry"
    OPERATE_CONTROLS = "operate_controls"
    EMERGENCY_SHUTDOWN = "emergency_shutdown"
    GRID_TIE = "grid_tie"
    VIEW_ADMIN = "view_admin"


class PermissionDeniedError(Exception):
    """Raised when a role lacks the capability an action needs."""

    def __init__(self, role: Role, capability: Capability) -> None:
        super().__init__(f"Role '{role.value}' lacks capability '{capability.value}'")
        self.role = role
        self.capability = capability


_BASE = frozenset({Capability.VIEW_TELEMETRY, Capability.OPERATE_CONTROLS})
_SUPERVISOR = _BASE | {
    Capability.EMERGENCY_SHUTDOWN,
    Capability.GRID_TIE,
    Capability.VIEW_ADMIN,
}

ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.USER: _BASE,
    Role.MANAGER: _SUPERVISOR,
    Role.ADMIN: _SUPERVISOR,
}

# Control fields that need more than OPERATE_CONTROLS to change
CONTROL_CAPABILITIES: dict[str, Capability] = {
    "emergency_shutdown": Capability.EMERGENCY_SHUTDOWN,
    "grid_tie_enabled": Capability.GRID_TIE,
}


def parse_role(value: str) -> Role:
    """Map a configured role string to a Role. Unknown strings are rejected."""
    try:
        return Role(value.lower())
    except ValueError:
        raise ValueError(f"Unknown role: {value!r}") from None


def has_capability(role: Role, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES[role]


def require_capability(role: Role, capability: Capability) -> None:
    if not has_capability(role, capability):
        raise PermissionDeniedError(role, capability)


def capability_for_control(field_name: str) -> Capability:
    return CONTROL_CAPABILITIES.get(field_name, Capability.OPERATE_CONTROLS)


def capabilities_of(role: Role) -> list[str]:
    return sorted(c.value for c in ROLE_CAPABILITIES[role])
