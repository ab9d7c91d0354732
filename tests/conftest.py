import copy
import itertools
from typing import Dict, List, Optional, Tuple

import pytest

from keyauth.core.authorizer import Authorizer
from keyauth.core.command_handler import CommandHandler
from keyauth.core.services.lifecycle_store import LifecycleStore
from keyauth.domain.errors import StorageUnavailableError
from keyauth.domain.interfaces.document_store import Document, DocumentStore
from keyauth.domain.models.common import CallerId, KeyToken, RoleId, TimestampMs
from keyauth.domain.models.identity import Caller, IdentityConfig

NOW_MS = TimestampMs(1_700_000_000_000)
ADMIN_ID = CallerId("100")
MANAGER_ID = CallerId("200")
USER_ID = CallerId("300")
MANAGER_ROLE = RoleId("900")


class InMemoryDocumentStore(DocumentStore):
    """DocumentStore kept in dictionaries, recording every call.

    Set `unavailable = True` to make every call raise StorageUnavailableError.
    """

    def __init__(self):
        self.collections: Dict[str, Dict[str, Document]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.unavailable = False

    def _record(self, operation: str, collection: str) -> None:
        self.calls.append((operation, collection))
        if self.unavailable:
            raise StorageUnavailableError(operation, ConnectionError("store offline"))

    def seed(self, collection: str, identity: str, document: Document) -> None:
        self.collections.setdefault(collection, {})[identity] = copy.deepcopy(document)

    def snapshot(self) -> Dict[str, Dict[str, Document]]:
        return copy.deepcopy(self.collections)

    async def get(self, collection: str, identity: str) -> Optional[Document]:
        self._record("get", collection)
        document = self.collections.get(collection, {}).get(identity)
        return copy.deepcopy(document)

    async def set(self, collection: str, identity: str, document: Document) -> None:
        self._record("set", collection)
        self.collections.setdefault(collection, {})[identity] = copy.deepcopy(document)

    async def update(self, collection: str, identity: str, fields: Document) -> None:
        self._record("update", collection)
        self.collections.setdefault(collection, {}).setdefault(identity, {}).update(copy.deepcopy(fields))

    async def delete(self, collection: str, identity: str) -> None:
        self._record("delete", collection)
        self.collections.get(collection, {}).pop(identity, None)

    async def list_all(self, collection: str) -> Dict[str, Document]:
        self._record("list_all", collection)
        return copy.deepcopy(self.collections.get(collection, {}))

    async def update_many(self, collection: str, updates: Dict[str, Document]) -> None:
        self._record("update_many", collection)
        records = self.collections.setdefault(collection, {})
        for identity, fields in updates.items():
            records.setdefault(identity, {}).update(copy.deepcopy(fields))


@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def clock():
    """A controllable clock; set `clock.now` to move time."""
    class FixedClock:
        now = NOW_MS

        def __call__(self) -> TimestampMs:
            return self.now
    return FixedClock()


@pytest.fixture
def key_generator():
    counter = itertools.count(1)
    return lambda: KeyToken(f"{next(counter):032x}")


@pytest.fixture
def lifecycle_store(document_store, clock, key_generator) -> LifecycleStore:
    return LifecycleStore(document_store, clock=clock, key_generator=key_generator)


@pytest.fixture
def identity_config() -> IdentityConfig:
    return IdentityConfig.from_iterables(admin_ids=[ADMIN_ID], manager_role_ids=[MANAGER_ROLE])


@pytest.fixture
def authorizer(identity_config) -> Authorizer:
    return Authorizer(identity_config)


@pytest.fixture
def command_handler(lifecycle_store, authorizer) -> CommandHandler:
    return CommandHandler(lifecycle_store=lifecycle_store, authorizer=authorizer, prefix="!")


@pytest.fixture
def admin() -> Caller:
    return Caller(user_id=ADMIN_ID, role_ids=frozenset())


@pytest.fixture
def manager() -> Caller:
    return Caller(user_id=MANAGER_ID, role_ids=frozenset({MANAGER_ROLE, RoleId("1")}))


@pytest.fixture
def user() -> Caller:
    return Caller(user_id=USER_ID, role_ids=frozenset({RoleId("1")}))


@pytest.fixture
def now_ms() -> TimestampMs:
    return NOW_MS
