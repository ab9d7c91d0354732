"""Domain models for access keys.

Includes the `KeyType` enumeration with its expiration table, the `KeyRecord`
entity as persisted in the document store, and the read views returned by the
lifecycle store.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from keyauth.domain.models.common import KeyToken, TimestampMs, NEVER_USED, UNSET

SECOND_MS = 1000
DAY_MS = 24 * 60 * 60 * SECOND_MS


class KeyType(str, enum.Enum):
    """Key durations accepted by the create and extend commands."""
    SECOND = "second"
    DAY = "day"
    THREE_DAY = "3day"
    WEEK = "week"
    MONTH = "month"
    LIFETIME = "lifetime"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["KeyType"]:
        """Returns the matching KeyType, or None for anything unrecognized."""
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


EXPIRATION_OFFSETS_MS: Dict[KeyType, int] = {
    KeyType.SECOND: SECOND_MS,              # for testing
    KeyType.DAY: DAY_MS,
    KeyType.THREE_DAY: 3 * DAY_MS,
    KeyType.WEEK: 7 * DAY_MS,
    KeyType.MONTH: 30 * DAY_MS,
    KeyType.LIFETIME: 10 * 365 * DAY_MS,    # 10 years
}

# Order used when listing valid types to users.
VALID_TYPE_NAMES = ("day", "3day", "week", "month", "lifetime", "second")


def expiration_offset_ms(key_type: str) -> int:
    """Duration granted by a key type. Unrecognized types get one day."""
    parsed = KeyType.parse(key_type)
    if parsed is None:
        return EXPIRATION_OFFSETS_MS[KeyType.DAY]
    return EXPIRATION_OFFSETS_MS[parsed]


def format_timestamp(timestamp_ms: TimestampMs) -> str:
    """Renders an epoch-millisecond timestamp as local time."""
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


def key_status(is_active: bool, is_banned: bool) -> str:
    if is_banned:
        return "BANNED"
    return "ACTIVE" if is_active else "PAUSED"


@dataclass
class KeyRecord:
    """Entity representing one key document under the `keys` collection."""
    key: KeyToken
    type: str
    created_at: TimestampMs
    expires_at: TimestampMs
    is_active: bool = True
    is_banned: bool = False
    user_id: Optional[str] = None
    username: Optional[str] = None
    last_used: Optional[TimestampMs] = None  # written by external validators
    hwid: Optional[str] = None               # written by external validators

    def to_document(self) -> Dict[str, Any]:
        """Serializes the record using the attribute names validators read."""
        document: Dict[str, Any] = {
            "type": self.type,
            "createdAt": self.created_at,
            "expiresAt": self.expires_at,
            "isActive": self.is_active,
            "isBanned": self.is_banned,
            "userId": self.user_id,
            "username": self.username,
        }
        if self.last_used is not None:
            document["lastUsed"] = self.last_used
        if self.hwid is not None:
            document["hwid"] = self.hwid
        return document

    @classmethod
    def from_document(cls, key: str, document: Dict[str, Any]) -> "KeyRecord":
        return cls(
            key=KeyToken(key),
            type=document.get("type", KeyType.DAY.value),
            created_at=TimestampMs(document.get("createdAt", 0)),
            expires_at=TimestampMs(document.get("expiresAt", 0)),
            is_active=bool(document.get("isActive", True)),
            is_banned=bool(document.get("isBanned", False)),
            user_id=document.get("userId") or None,
            username=document.get("username") or None,
            last_used=document.get("lastUsed") or None,
            hwid=document.get("hwid") or None,
        )

    @property
    def status(self) -> str:
        return key_status(self.is_active, self.is_banned)


@dataclass(frozen=True)
class CreatedKey:
    key: KeyToken
    type: str
    expires_at: TimestampMs


@dataclass(frozen=True)
class KeyInfo:
    """Read view of a single key, with sentinels for unset attributes."""
    key: KeyToken
    type: str
    created_at: TimestampMs
    expires_at: TimestampMs
    is_active: bool
    is_banned: bool
    last_used: str = NEVER_USED
    hwid: str = UNSET
    username: str = UNSET

    @classmethod
    def from_record(cls, record: KeyRecord) -> "KeyInfo":
        return cls(
            key=record.key,
            type=record.type,
            created_at=record.created_at,
            expires_at=record.expires_at,
            is_active=record.is_active,
            is_banned=record.is_banned,
            last_used=format_timestamp(record.last_used) if record.last_used else NEVER_USED,
            hwid=record.hwid or UNSET,
            username=record.username or UNSET,
        )

    @property
    def status(self) -> str:
        return key_status(self.is_active, self.is_banned)


@dataclass(frozen=True)
class KeyListing:
    """Projection of a key used by the list command."""
    key: KeyToken
    type: str
    expires_at: TimestampMs
    is_active: bool
    is_banned: bool
    username: str = UNSET

    @classmethod
    def from_record(cls, record: KeyRecord) -> "KeyListing":
        return cls(
            key=record.key,
            type=record.type,
            expires_at=record.expires_at,
            is_active=record.is_active,
            is_banned=record.is_banned,
            username=record.username or UNSET,
        )

    @property
    def status(self) -> str:
        return key_status(self.is_active, self.is_banned)
