"""Credential persistence across storage backends."""

from pathlib import Path

from memory.credential_store import (
    TOKEN_KEY,
    USER_INFO_KEY,
    CredentialStore,
    InMemoryStorage,
    JSONFileStorage,
)
from models.credential import Credential, UserProfile


def _credential() -> Credential:
    return Credential(token="abc", profile=UserProfile(user_id="u1", display_name="Ann"))


def test_json_file_storage_survives_restart(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "credentials.json"
    CredentialStore(JSONFileStorage(path)).put(_credential())

    restored = CredentialStore(JSONFileStorage(path)).get()

    assert restored is not None
    assert restored.token == "abc"
    assert restored.profile.user_id == "u1"
    assert restored.profile.display_name == "Ann"


def test_missing_either_key_means_no_credential() -> None:
    token_only = CredentialStore(InMemoryStorage({TOKEN_KEY: "abc"}))
    profile_only = CredentialStore(InMemoryStorage({USER_INFO_KEY: '{"id": "u1"}'}))

    assert token_only.get() is None
    assert token_only.token() is None
    assert profile_only.get() is None


def test_unreadable_profile_reads_as_absent() -> None:
    store = CredentialStore(InMemoryStorage({TOKEN_KEY: "abc", USER_INFO_KEY: "not-json"}))
    assert store.get() is None

    store = CredentialStore(InMemoryStorage({TOKEN_KEY: "abc", USER_INFO_KEY: '{"displayName": "no id"}'}))
    assert store.get() is None


def test_corrupt_file_is_treated_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "credentials.json"
    path.write_text("{broken")

    store = CredentialStore(JSONFileStorage(path))

    assert store.get() is None
    assert store.put(_credential()) is True
    assert store.token() == "abc"


def test_clear_removes_both_keys() -> None:
    storage = InMemoryStorage()
    store = CredentialStore(storage)
    store.put(_credential())
    assert storage.keys() == [TOKEN_KEY, USER_INFO_KEY]

    assert store.clear() is True
    assert storage.keys() == []
    assert store.get() is None


def test_profile_accepts_platform_field_names() -> None:
    profile = UserProfile.from_dict({"openid": "wx-1", "nickName": "Bo", "avatar": "a.png"})

    assert profile.user_id == "wx-1"
    assert profile.display_name == "Bo"
    assert profile.to_dict()["avatar"] == "a.png"
