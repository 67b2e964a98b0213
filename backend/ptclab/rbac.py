from __future__ import annotations

from enum import Enum

from .errors import PermissionDenied

# purpose: closed role vocabulary and data-driven capability checks
# status: active


class Role(str, Enum):
    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    TECH = "tech"
    GUEST = "guest"

    @classmethod
    def parse(cls, value: str | None) -> "Role":
        """Stored role string to Role; anything unrecognised is a guest."""
        try:
            return cls(value)
        except ValueError:
            return cls.GUEST


class Capability(str, Enum):
    READ = "read"
    WRITE = "write"
    MANAGE = "manage"
    ADMIN = "admin"


_ROLE_LEVELS: dict[Role, int] = {
    Role.GUEST: 10,
    Role.TECH: 20,
    Role.SUPERVISOR: 30,
    Role.ADMIN: 40,
}

_CAPABILITY_MINIMUM: dict[Capability, Role] = {
    Capability.READ: Role.GUEST,
    Capability.WRITE: Role.TECH,
    Capability.MANAGE: Role.SUPERVISOR,
    Capability.ADMIN: Role.ADMIN,
}


def role_level(role: Role | str) -> int:
    return _ROLE_LEVELS[Role.parse(role) if isinstance(role, str) else role]


def role_allows(role: Role | str, capability: Capability) -> bool:
    return role_level(role) >= _ROLE_LEVELS[_CAPABILITY_MINIMUM[capability]]


def can_write(role: Role | str) -> bool:
    return role_allows(role, Capability.WRITE)


def can_manage(role: Role | str) -> bool:
    return role_allows(role, Capability.MANAGE)


def is_admin(role: Role | str) -> bool:
    return role_allows(role, Capability.ADMIN)


def require(role: Role | str, capability: Capability) -> None:
    if not role_allows(role, capability):
        raise PermissionDenied(
            f"Insufficient permissions: {capability.value} access requires "
            f"{_CAPABILITY_MINIMUM[capability].value} or higher"
        )
