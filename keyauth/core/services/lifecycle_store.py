"""Lifecycle Store: creates, reads, updates and deletes key and application records.

Wraps a `DocumentStore` with the domain rules: expiration math, existence
checks and the protected default application. Expected conditions are
returned as failed `OperationResult`s; `StorageUnavailableError` from the
document store propagates to the caller.

Existence checks and the writes that follow are separate round-trips and are
not isolated from concurrent commands.
"""

import logging
import secrets
import time
from typing import Callable, List, Optional

from keyauth.domain.errors import ErrorKind
from keyauth.domain.interfaces.document_store import DocumentStore
from keyauth.domain.models.applications import ApplicationRecord, DEFAULT_APP_NAME
from keyauth.domain.models.common import (
    AppName, KeyToken, TimestampMs, KEYS_COLLECTION, APPLICATIONS_COLLECTION, is_valid_identity
)
from keyauth.domain.models.keys import (
    CreatedKey, KeyInfo, KeyListing, KeyRecord, expiration_offset_ms
)
from keyauth.domain.models.results import OperationResult

logger = logging.getLogger(__name__)

KEY_NOT_FOUND = "Key not found"
APP_NOT_FOUND = "Application not found"
APP_ALREADY_EXISTS = "Application already exists"
APP_NAME_INVALID = "Application names cannot contain / . # $ [ or ]"
DEFAULT_APP_PROTECTED = "Cannot delete default application"


def current_time_ms() -> TimestampMs:
    return TimestampMs(int(time.time() * 1000))


def generate_key() -> KeyToken:
    """128 bits of randomness as 32 hex characters."""
    return KeyToken(secrets.token_hex(16))


class LifecycleStore:
    """Owns key and application records."""

    def __init__(
        self,
        document_store: DocumentStore,
        clock: Callable[[], TimestampMs] = current_time_ms,
        key_generator: Callable[[], KeyToken] = generate_key,
    ):
        self.document_store = document_store
        self.clock = clock
        self.key_generator = key_generator

    # --- Keys ---

    async def create_key(
        self, key_type: str, user_id: Optional[str] = None, username: Optional[str] = None
    ) -> CreatedKey:
        now = self.clock()
        record = KeyRecord(
            key=self.key_generator(),
            type=key_type,
            created_at=now,
            expires_at=TimestampMs(now + expiration_offset_ms(key_type)),
            user_id=user_id,
            username=username,
        )
        await self.document_store.set(KEYS_COLLECTION, record.key, record.to_document())
        logger.info(f"Created {key_type} key {record.key[:8]}... for user {user_id or '-'}")
        return CreatedKey(key=record.key, type=record.type, expires_at=record.expires_at)

    async def delete_key(self, key: str) -> OperationResult[None]:
        if await self._load_key(key) is None:
            return OperationResult.fail(ErrorKind.NOT_FOUND, KEY_NOT_FOUND)
        await self.document_store.delete(KEYS_COLLECTION, key)
        logger.info(f"Deleted key {key[:8]}...")
        return OperationResult.ok()

    async def ban_key(self, key: str) -> OperationResult[None]:
        return await self._update_key(key, isBanned=True)

    async def unban_key(self, key: str) -> OperationResult[None]:
        return await self._update_key(key, isBanned=False)

    async def pause_key(self, key: str) -> OperationResult[None]:
        return await self._update_key(key, isActive=False)

    async def resume_key(self, key: str) -> OperationResult[None]:
        return await self._update_key(key, isActive=True)

    async def extend_key(self, key: str, key_type: str) -> OperationResult[TimestampMs]:
        """Adds the duration of `key_type` on top of the current expiration,
        even when the key has already expired.
        """
        record = await self._load_key(key)
        if record is None:
            return OperationResult.fail(ErrorKind.NOT_FOUND, KEY_NOT_FOUND)
        new_expiry = TimestampMs(record.expires_at + expiration_offset_ms(key_type))
        await self.document_store.update(KEYS_COLLECTION, key, {"expiresAt": new_expiry})
        logger.info(f"Extended key {key[:8]}... by {key_type}")
        return OperationResult.ok(new_expiry)

    async def get_key_info(self, key: str) -> OperationResult[KeyInfo]:
        record = await self._load_key(key)
        if record is None:
            return OperationResult.fail(ErrorKind.NOT_FOUND, KEY_NOT_FOUND)
        return OperationResult.ok(KeyInfo.from_record(record))

    async def list_keys(self) -> List[KeyListing]:
        documents = await self.document_store.list_all(KEYS_COLLECTION)
        return [
            KeyListing.from_record(KeyRecord.from_document(key, document))
            for key, document in documents.items()
        ]

    async def pause_all_keys(self) -> OperationResult[int]:
        return await self._set_all_active(False)

    async def resume_all_keys(self) -> OperationResult[int]:
        return await self._set_all_active(True)

    async def _set_all_active(self, is_active: bool) -> OperationResult[int]:
        documents = await self.document_store.list_all(KEYS_COLLECTION)
        if documents:
            # One request; a fault raises instead of leaving a partial update.
            await self.document_store.update_many(
                KEYS_COLLECTION, {key: {"isActive": is_active} for key in documents}
            )
        logger.info(f"Set isActive={is_active} on {len(documents)} keys")
        return OperationResult.ok(len(documents))

    async def _load_key(self, key: str) -> Optional[KeyRecord]:
        """Reads one key record; malformed tokens and non-record values count as absent."""
        if not is_valid_identity(key):
            return None
        document = await self.document_store.get(KEYS_COLLECTION, key)
        if not isinstance(document, dict):
            return None
        return KeyRecord.from_document(key, document)

    async def _update_key(self, key: str, **fields) -> OperationResult[None]:
        if await self._load_key(key) is None:
            return OperationResult.fail(ErrorKind.NOT_FOUND, KEY_NOT_FOUND)
        await self.document_store.update(KEYS_COLLECTION, key, fields)
        logger.info(f"Updated key {key[:8]}...: {fields}")
        return OperationResult.ok()

    # --- Applications ---

    async def initialize_apps(self) -> bool:
        """Creates the default application when no application exists yet.

        Returns:
            True if the default application was written by this call.
        """
        existing = await self.document_store.list_all(APPLICATIONS_COLLECTION)
        if existing:
            logger.debug(f"Applications already initialized ({len(existing)} present)")
            return False
        default = ApplicationRecord(name=DEFAULT_APP_NAME)
        await self.document_store.set(APPLICATIONS_COLLECTION, default.name, default.to_document())
        logger.info("Created default application")
        return True

    async def add_app(self, name: str) -> OperationResult[None]:
        if not is_valid_identity(name):
            return OperationResult.fail(ErrorKind.INVALID_ARGUMENT, APP_NAME_INVALID)
        if await self._app_exists(name):
            return OperationResult.fail(ErrorKind.ALREADY_EXISTS, APP_ALREADY_EXISTS)
        record = ApplicationRecord(name=AppName(name))
        await self.document_store.set(APPLICATIONS_COLLECTION, name, record.to_document())
        logger.info(f"Added application {name}")
        return OperationResult.ok()

    async def delete_app(self, name: str) -> OperationResult[None]:
        if name == DEFAULT_APP_NAME:
            return OperationResult.fail(ErrorKind.PROTECTED_RECORD, DEFAULT_APP_PROTECTED)
        if not await self._app_exists(name):
            return OperationResult.fail(ErrorKind.NOT_FOUND, APP_NOT_FOUND)
        await self.document_store.delete(APPLICATIONS_COLLECTION, name)
        logger.info(f"Deleted application {name}")
        return OperationResult.ok()

    async def pause_app(self, name: str) -> OperationResult[None]:
        return await self._set_app_active(name, False)

    async def resume_app(self, name: str) -> OperationResult[None]:
        return await self._set_app_active(name, True)

    async def list_apps(self) -> List[ApplicationRecord]:
        documents = await self.document_store.list_all(APPLICATIONS_COLLECTION)
        return [ApplicationRecord.from_document(name, doc) for name, doc in documents.items()]

    async def _app_exists(self, name: str) -> bool:
        # A name with a path separator would address another record or one of its fields.
        if not is_valid_identity(name):
            return False
        return isinstance(await self.document_store.get(APPLICATIONS_COLLECTION, name), dict)

    async def _set_app_active(self, name: str, is_active: bool) -> OperationResult[None]:
        if not await self._app_exists(name):
            return OperationResult.fail(ErrorKind.NOT_FOUND, APP_NOT_FOUND)
        await self.document_store.update(APPLICATIONS_COLLECTION, name, {"isActive": is_active})
        logger.info(f"Set application {name} isActive={is_active}")
        return OperationResult.ok()
