"""Domain models for callers and permission tiers."""

import enum
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

from keyauth.domain.models.common import CallerId, RoleId


class Tier(enum.IntEnum):
    """Permission tiers, ordered by privilege."""
    USER = 0
    MANAGER = 1
    ADMIN = 2


@dataclass(frozen=True)
class IdentityConfig:
    """Admin identities and manager roles, fixed for the process lifetime."""
    admin_ids: FrozenSet[CallerId] = frozenset()
    manager_role_ids: FrozenSet[RoleId] = frozenset()

    @classmethod
    def from_iterables(cls, admin_ids: Iterable[str], manager_role_ids: Iterable[str]) -> "IdentityConfig":
        return cls(
            admin_ids=frozenset(CallerId(str(i)) for i in admin_ids),
            manager_role_ids=frozenset(RoleId(str(r)) for r in manager_role_ids),
        )


@dataclass(frozen=True)
class Caller:
    """Author of an inbound message.

    `role_ids` is None when the message arrives outside any group context
    (e.g. a direct message), where roles cannot be resolved.
    """
    user_id: CallerId
    role_ids: Optional[FrozenSet[RoleId]] = None
    is_bot: bool = False


@dataclass(frozen=True)
class InboundMessage:
    """A command message delivered by the command surface."""
    content: str
    caller: Caller
