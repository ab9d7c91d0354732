"""Concrete implementation of the DocumentStore interface on top of the
Firebase Realtime Database, using the `firebase_admin` SDK.

The Admin SDK is synchronous, so every call runs in a worker thread via
`asyncio.to_thread`. SDK, credential-refresh and transport faults are re-raised as
`StorageUnavailableError`.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

import firebase_admin
from firebase_admin import credentials, db, exceptions
from google.auth import exceptions as auth_exceptions

from keyauth.domain.errors import ConfigurationError, StorageUnavailableError
from keyauth.domain.interfaces.document_store import Document, DocumentStore

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "keyauth"


class FirebaseDocumentStore(DocumentStore):
    """DocumentStore backed by a Firebase Realtime Database."""

    def __init__(self, app: firebase_admin.App):
        self.app = app
        logger.info(f"FirebaseDocumentStore initialized for app '{app.name}'.")

    @classmethod
    def connect(cls, credentials_path: Optional[str], database_url: Optional[str]) -> "FirebaseDocumentStore":
        """Initializes the Firebase app from a service account file.

        Raises:
            ConfigurationError: If the credentials or database URL are missing or unusable.
        """
        if not credentials_path or not database_url:
            raise ConfigurationError("Both firebase.credentials and firebase.database_url must be configured.")
        try:
            cert = credentials.Certificate(credentials_path)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Invalid Firebase credentials at {credentials_path}: {e}") from e
        try:
            app = firebase_admin.get_app(FIREBASE_APP_NAME)
        except ValueError:
            try:
                app = firebase_admin.initialize_app(cert, {"databaseURL": database_url}, name=FIREBASE_APP_NAME)
            except ValueError as e:
                raise ConfigurationError(f"Invalid Firebase settings (database URL {database_url}): {e}") from e
        return cls(app)

    def _reference(self, collection: str, identity: Optional[str] = None) -> db.Reference:
        path = f"{collection}/{identity}" if identity else collection
        return db.reference(path, app=self.app)

    async def _call(self, operation: str, func: Callable[..., Any], *args: Any) -> Any:
        logger.debug(f"Firebase {operation}")
        try:
            return await asyncio.to_thread(func, *args)
        except (exceptions.FirebaseError, auth_exceptions.GoogleAuthError, OSError) as e:
            logger.error(f"Firebase {operation} failed: {e}")
            raise StorageUnavailableError(operation, e) from e

    async def get(self, collection: str, identity: str) -> Optional[Document]:
        ref = self._reference(collection, identity)
        return await self._call(f"get {collection}/{identity}", ref.get)

    async def set(self, collection: str, identity: str, document: Document) -> None:
        ref = self._reference(collection, identity)
        await self._call(f"set {collection}/{identity}", ref.set, document)

    async def update(self, collection: str, identity: str, fields: Document) -> None:
        ref = self._reference(collection, identity)
        await self._call(f"update {collection}/{identity}", ref.update, fields)

    async def delete(self, collection: str, identity: str) -> None:
        ref = self._reference(collection, identity)
        await self._call(f"delete {collection}/{identity}", ref.delete)

    async def list_all(self, collection: str) -> Dict[str, Document]:
        ref = self._reference(collection)
        snapshot = await self._call(f"list {collection}", ref.get)
        return dict(snapshot) if snapshot else {}

    async def update_many(self, collection: str, updates: Dict[str, Document]) -> None:
        # Multi-path update: the database applies all paths or none.
        paths = {
            f"{identity}/{name}": value
            for identity, fields in updates.items()
            for name, value in fields.items()
        }
        if not paths:
            return
        ref = self._reference(collection)
        await self._call(f"update_many {collection} ({len(updates)} records)", ref.update, paths)
