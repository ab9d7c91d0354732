import asyncio

import pytest

from keyauth.core.services.lifecycle_store import LifecycleStore, generate_key
from keyauth.domain.errors import ErrorKind, StorageUnavailableError
from keyauth.domain.models.common import APPLICATIONS_COLLECTION, KEYS_COLLECTION, NEVER_USED, UNSET

EXPECTED_OFFSETS = {
    "second": 1_000,
    "day": 86_400_000,
    "3day": 259_200_000,
    "week": 604_800_000,
    "month": 2_592_000_000,
    "lifetime": 315_360_000_000,
}


def run(coro):
    return asyncio.run(coro)


# --- Keys ---

@pytest.mark.parametrize("key_type, offset", EXPECTED_OFFSETS.items())
def test_create_key_expiration_matches_table(lifecycle_store: LifecycleStore, document_store, now_ms, key_type, offset):
    created = run(lifecycle_store.create_key(key_type))

    stored = document_store.collections[KEYS_COLLECTION][created.key]
    assert stored["createdAt"] == now_ms
    assert stored["expiresAt"] - stored["createdAt"] == offset
    assert created.expires_at == now_ms + offset
    assert created.type == key_type


def test_create_key_unknown_type_falls_back_to_day(lifecycle_store, document_store, now_ms):
    created = run(lifecycle_store.create_key("fortnight"))
    assert created.expires_at == now_ms + EXPECTED_OFFSETS["day"]
    assert document_store.collections[KEYS_COLLECTION][created.key]["type"] == "fortnight"


def test_create_key_persists_defaults_and_owner(lifecycle_store, document_store):
    created = run(lifecycle_store.create_key("week", "42", "Jane Doe"))
    stored = document_store.collections[KEYS_COLLECTION][created.key]
    assert stored["isActive"] is True
    assert stored["isBanned"] is False
    assert stored["userId"] == "42"
    assert stored["username"] == "Jane Doe"
    assert "lastUsed" not in stored
    assert "hwid" not in stored


def test_generate_key_is_32_hex_chars():
    key = generate_key()
    assert len(key) == 32
    int(key, 16)
    assert generate_key() != key


def test_create_then_get_key_info_round_trip(lifecycle_store):
    created = run(lifecycle_store.create_key("week"))
    result = run(lifecycle_store.get_key_info(created.key))

    assert result.success
    info = result.value
    assert info.type == "week"
    assert info.is_active is True
    assert info.is_banned is False
    assert info.last_used == NEVER_USED
    assert info.hwid == UNSET
    assert info.username == UNSET
    assert info.status == "ACTIVE"


def test_get_key_info_reports_validator_fields(lifecycle_store, document_store, now_ms):
    document_store.seed(KEYS_COLLECTION, "abc", {
        "type": "day", "createdAt": now_ms, "expiresAt": now_ms + 1,
        "isActive": True, "isBanned": True, "lastUsed": now_ms, "hwid": "HW-1", "username": "bob",
    })
    info = run(lifecycle_store.get_key_info("abc")).value
    assert info.hwid == "HW-1"
    assert info.username == "bob"
    assert info.last_used != NEVER_USED
    assert info.status == "BANNED"


def test_extend_is_additive_on_current_expiration(lifecycle_store, clock):
    created = run(lifecycle_store.create_key("day"))
    clock.now += 5_000  # time passing must not matter

    first = run(lifecycle_store.extend_key(created.key, "week"))
    second = run(lifecycle_store.extend_key(created.key, "week"))

    assert first.success and second.success
    assert second.value == created.expires_at + 2 * EXPECTED_OFFSETS["week"]
    info = run(lifecycle_store.get_key_info(created.key)).value
    assert info.expires_at == second.value


def test_extend_expired_key_adds_to_old_expiration(lifecycle_store, clock):
    created = run(lifecycle_store.create_key("second"))
    clock.now += EXPECTED_OFFSETS["month"]

    result = run(lifecycle_store.extend_key(created.key, "day"))
    assert result.value == created.expires_at + EXPECTED_OFFSETS["day"]


@pytest.mark.parametrize("operation, field, expected", [
    ("ban_key", "isBanned", True),
    ("unban_key", "isBanned", False),
    ("pause_key", "isActive", False),
    ("resume_key", "isActive", True),
])
def test_key_flag_operations_are_idempotent(lifecycle_store, document_store, operation, field, expected):
    created = run(lifecycle_store.create_key("day"))
    for _ in range(2):
        result = run(getattr(lifecycle_store, operation)(created.key))
        assert result.success
    assert document_store.collections[KEYS_COLLECTION][created.key][field] is expected


@pytest.mark.parametrize("operation, args", [
    ("delete_key", ("missing",)),
    ("ban_key", ("missing",)),
    ("unban_key", ("missing",)),
    ("pause_key", ("missing",)),
    ("resume_key", ("missing",)),
    ("extend_key", ("missing", "day")),
    ("get_key_info", ("missing",)),
])
def test_missing_key_returns_not_found_and_leaves_store_unchanged(lifecycle_store, document_store, operation, args):
    run(lifecycle_store.create_key("day"))
    before = document_store.snapshot()

    result = run(getattr(lifecycle_store, operation)(*args))

    assert not result.success
    assert result.error == ErrorKind.NOT_FOUND
    assert result.message == "Key not found"
    assert document_store.snapshot() == before


def test_delete_key_removes_record(lifecycle_store, document_store):
    created = run(lifecycle_store.create_key("day"))
    assert run(lifecycle_store.delete_key(created.key)).success
    assert created.key not in document_store.collections[KEYS_COLLECTION]
    assert run(lifecycle_store.get_key_info(created.key)).error == ErrorKind.NOT_FOUND


def test_list_keys_projects_records_in_insertion_order(lifecycle_store):
    first = run(lifecycle_store.create_key("day", "1", "alice"))
    second = run(lifecycle_store.create_key("lifetime"))

    listings = run(lifecycle_store.list_keys())

    assert [listing.key for listing in listings] == [first.key, second.key]
    assert listings[0].username == "alice"
    assert listings[1].username == UNSET
    assert listings[1].type == "lifetime"


def test_list_keys_empty(lifecycle_store):
    assert run(lifecycle_store.list_keys()) == []


def test_pause_all_then_list_shows_every_key_inactive(lifecycle_store, document_store):
    keys = [run(lifecycle_store.create_key("day")).key for _ in range(3)]

    result = run(lifecycle_store.pause_all_keys())

    assert result.success and result.value == 3
    assert all(not listing.is_active for listing in run(lifecycle_store.list_keys()))
    assert ("update_many", KEYS_COLLECTION) in document_store.calls
    assert set(document_store.collections[KEYS_COLLECTION]) == set(keys)


def test_resume_all_reactivates_keys(lifecycle_store):
    run(lifecycle_store.create_key("day"))
    run(lifecycle_store.create_key("week"))
    run(lifecycle_store.pause_all_keys())

    run(lifecycle_store.resume_all_keys())

    assert all(listing.is_active for listing in run(lifecycle_store.list_keys()))


def test_pause_all_with_no_keys_issues_no_write(lifecycle_store, document_store):
    result = run(lifecycle_store.pause_all_keys())
    assert result.success and result.value == 0
    assert ("update_many", KEYS_COLLECTION) not in document_store.calls


def test_storage_fault_propagates(lifecycle_store, document_store):
    document_store.unavailable = True
    with pytest.raises(StorageUnavailableError):
        run(lifecycle_store.create_key("day"))
    with pytest.raises(StorageUnavailableError):
        run(lifecycle_store.pause_all_keys())


# --- Applications ---

def test_initialize_apps_is_idempotent(lifecycle_store, document_store):
    assert run(lifecycle_store.initialize_apps()) is True
    assert run(lifecycle_store.initialize_apps()) is False

    apps = document_store.collections[APPLICATIONS_COLLECTION]
    assert list(apps) == ["default"]
    assert apps["default"] == {"isActive": True}


def test_initialize_apps_keeps_existing_applications(lifecycle_store, document_store):
    document_store.seed(APPLICATIONS_COLLECTION, "default", {"isActive": False})
    run(lifecycle_store.initialize_apps())
    assert document_store.collections[APPLICATIONS_COLLECTION]["default"] == {"isActive": False}


def test_add_app_rejects_duplicates(lifecycle_store):
    assert run(lifecycle_store.add_app("launcher")).success
    result = run(lifecycle_store.add_app("launcher"))
    assert result.error == ErrorKind.ALREADY_EXISTS
    assert result.message == "Application already exists"


@pytest.mark.parametrize("is_active", [True, False])
def test_delete_default_app_is_always_protected(lifecycle_store, document_store, is_active):
    document_store.seed(APPLICATIONS_COLLECTION, "default", {"isActive": is_active})
    document_store.calls.clear()

    result = run(lifecycle_store.delete_app("default"))

    assert result.error == ErrorKind.PROTECTED_RECORD
    assert result.message == "Cannot delete default application"
    assert "default" in document_store.collections[APPLICATIONS_COLLECTION]
    assert document_store.calls == []


def test_delete_default_app_is_protected_even_when_absent(lifecycle_store):
    assert run(lifecycle_store.delete_app("default")).error == ErrorKind.PROTECTED_RECORD


def test_app_lifecycle(lifecycle_store):
    run(lifecycle_store.initialize_apps())
    run(lifecycle_store.add_app("launcher"))

    assert run(lifecycle_store.pause_app("launcher")).success
    apps = {app.name: app for app in run(lifecycle_store.list_apps())}
    assert apps["launcher"].is_active is False
    assert apps["launcher"].status == "PAUSED"
    assert apps["default"].is_active is True

    assert run(lifecycle_store.resume_app("launcher")).success
    assert run(lifecycle_store.delete_app("launcher")).success
    assert [app.name for app in run(lifecycle_store.list_apps())] == ["default"]


@pytest.mark.parametrize("operation", ["delete_app", "pause_app", "resume_app"])
def test_missing_app_returns_not_found(lifecycle_store, document_store, operation):
    run(lifecycle_store.initialize_apps())
    before = document_store.snapshot()

    result = run(getattr(lifecycle_store, operation)("ghost"))

    assert result.error == ErrorKind.NOT_FOUND
    assert result.message == "Application not found"
    assert document_store.snapshot() == before


@pytest.mark.parametrize("name", ["default/", "default/isActive", "/default", "de.fault", "app#1", "a$b", "a[0]"])
@pytest.mark.parametrize("operation", ["delete_app", "pause_app", "resume_app"])
def test_app_names_with_path_characters_never_reach_the_store(lifecycle_store, document_store, operation, name):
    run(lifecycle_store.initialize_apps())
    before = document_store.snapshot()
    document_store.calls.clear()

    result = run(getattr(lifecycle_store, operation)(name))

    assert result.error == ErrorKind.NOT_FOUND
    assert document_store.calls == []
    assert document_store.snapshot() == before


def test_delete_default_with_trailing_separator_keeps_default(lifecycle_store, document_store):
    run(lifecycle_store.initialize_apps())

    assert run(lifecycle_store.delete_app("default/")).error == ErrorKind.NOT_FOUND
    assert document_store.collections[APPLICATIONS_COLLECTION]["default"] == {"isActive": True}


def test_add_app_rejects_path_characters(lifecycle_store, document_store):
    result = run(lifecycle_store.add_app("tools/launcher"))

    assert result.error == ErrorKind.INVALID_ARGUMENT
    assert document_store.calls == []


@pytest.mark.parametrize("operation, args", [
    ("get_key_info", ()),
    ("delete_key", ()),
    ("ban_key", ()),
    ("pause_key", ()),
    ("extend_key", ("day",)),
])
@pytest.mark.parametrize("key", ["abc.def", "abc/isActive", "abc/", ""])
def test_key_tokens_with_path_characters_are_not_found(lifecycle_store, document_store, operation, args, key):
    document_store.seed(KEYS_COLLECTION, "abc", {"type": "day", "createdAt": 1, "expiresAt": 2})
    before = document_store.snapshot()
    document_store.calls.clear()

    result = run(getattr(lifecycle_store, operation)(key, *args))

    assert result.error == ErrorKind.NOT_FOUND
    assert result.message == "Key not found"
    assert document_store.calls == []
    assert document_store.snapshot() == before


def test_non_record_value_is_treated_as_missing_key(lifecycle_store, document_store):
    document_store.seed(KEYS_COLLECTION, "abc", True)
    assert run(lifecycle_store.get_key_info("abc")).error == ErrorKind.NOT_FOUND
    assert run(lifecycle_store.ban_key("abc")).error == ErrorKind.NOT_FOUND
    assert document_store.collections[KEYS_COLLECTION]["abc"] is True
