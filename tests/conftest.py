"""Shared fixtures: in-memory backend, storage and a scripted prompter."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from memory.auth_session import AuthSession
from memory.credential_store import CredentialStore, InMemoryStorage
from models.credential import Credential, UserProfile
from tools.backend import InMemoryBackendConnection
from tools.gateway import RemoteCallGateway
from tools.prompts import ScriptedPrompter

LOGIN_TOKEN = "tok-1"


def accept_login(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {"code": 0, "token": LOGIN_TOKEN, "userInfo": {"id": "u1", "displayName": "Ann"}}


def login_calls(backend: InMemoryBackendConnection) -> int:
    return sum(1 for name, _ in backend.function_calls if name == "login")


def store_credential(store: CredentialStore, token: str = "stored-token") -> None:
    store.put(Credential(token=token, profile=UserProfile(user_id="u1", display_name="Ann")))


@pytest.fixture()
def backend() -> InMemoryBackendConnection:
    connection = InMemoryBackendConnection(ready=True)
    connection.register_function("login", accept_login)
    return connection


@pytest.fixture()
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture()
def credential_store(storage: InMemoryStorage) -> CredentialStore:
    return CredentialStore(storage)


@pytest.fixture()
def prompter() -> ScriptedPrompter:
    return ScriptedPrompter()


@pytest.fixture()
def session(backend: InMemoryBackendConnection, credential_store: CredentialStore) -> AuthSession:
    return AuthSession(backend, credential_store)


@pytest.fixture()
def gateway(
    backend: InMemoryBackendConnection,
    session: AuthSession,
    credential_store: CredentialStore,
    prompter: ScriptedPrompter,
) -> RemoteCallGateway:
    return RemoteCallGateway(backend, session, credential_store, prompter)
