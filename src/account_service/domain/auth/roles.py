"""Role enum and static display-name mapping for authorization checks."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class Role(StrEnum):
    """Supported user roles; the first role assigned to a user is primary."""

    DISTRIBUTOR = "distributor"
    ADMINISTRATOR = "administrator"
    SUPER_ADMINISTRATOR = "super_administrator"


ROLE_DISPLAY_NAMES: Final[dict[Role, str]] = {
    Role.DISTRIBUTOR: "Distributor",
    Role.ADMINISTRATOR: "Administrator",
    Role.SUPER_ADMINISTRATOR: "SuperAdministrator",
}

_ROLES_BY_DISPLAY_NAME: Final[dict[str, Role]] = {
    name.lower(): role for role, name in ROLE_DISPLAY_NAMES.items()
}

ADMIN_ROLES: Final[frozenset[Role]] = frozenset(
    {Role.ADMINISTRATOR, Role.SUPER_ADMINISTRATOR}
)


def role_display_name(role: Role) -> str:
    """Return the display name embedded in session claims for one role."""

    return ROLE_DISPLAY_NAMES[role]


def resolve_role_by_name(name: str) -> Role | None:
    """Resolve a configured role name (case-insensitive) to a known role."""

    return _ROLES_BY_DISPLAY_NAME.get(name.strip().lower())
