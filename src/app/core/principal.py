"""Resolved acting identity passed into every service entry point."""

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from app.models.enums import UserRole


class Capability(str, Enum):
    """What a principal is allowed to do beyond touching its own cards."""

    ADMIN = "ADMIN"


ROLE_CAPABILITIES: dict[UserRole, frozenset[Capability]] = {
    UserRole.USER: frozenset(),
    UserRole.ADMIN: frozenset({Capability.ADMIN}),
}


@dataclass(frozen=True)
class Principal:
    """The acting user with its capability set.

    ``ip_address`` is carried only so audit events can record it.
    """

    id: UUID
    capabilities: frozenset[Capability] = field(default_factory=frozenset)
    ip_address: str | None = None

    @property
    def is_admin(self) -> bool:
        return Capability.ADMIN in self.capabilities

    def can_access(self, owner_id: UUID) -> bool:
        """True for the owner of a resource or an administrator."""
        return self.id == owner_id or self.is_admin

    @classmethod
    def from_user(cls, user, ip_address: str | None = None) -> "Principal":
        return cls(
            id=user.id,
            capabilities=ROLE_CAPABILITIES.get(user.role, frozenset()),
            ip_address=ip_address,
        )
