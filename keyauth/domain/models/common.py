"""Defines common Value Objects used across different domain contexts.

These objects represent simple values like key tokens, application names and
caller identities, ensuring consistency and type safety.
"""

from typing import NewType

# Using NewType for semantic clarity, although they are plain values at runtime.
KeyToken = NewType("KeyToken", str)            # Opaque hex token identifying a key
AppName = NewType("AppName", str)              # Unique application name
CallerId = NewType("CallerId", str)            # External identity of the command author
RoleId = NewType("RoleId", str)                # Role held by a caller inside a group
TimestampMs = NewType("TimestampMs", int)      # Milliseconds since the Unix epoch

# === Storage collections ===
KEYS_COLLECTION = "keys"
APPLICATIONS_COLLECTION = "applications"

# === Sentinels shown for unset optional attributes ===
NEVER_USED = "Never"
UNSET = "None"

# Characters the database rejects in a path segment; "/" would address a child node.
RESERVED_IDENTITY_CHARS = frozenset("/.#$[]")


def is_valid_identity(identity: str) -> bool:
    """True when `identity` names exactly one record of a collection."""
    return bool(identity) and not any(c in RESERVED_IDENTITY_CHARS or ord(c) < 0x20 for c in identity)
