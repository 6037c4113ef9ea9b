"""Durable key/value storage and the credential store built on it."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from models.credential import Credential, UserProfile

LOGGER = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_INFO_KEY = "userInfo"


class KeyValueStorage:
    """Synchronous local storage interface; missing keys read as ``None``."""

    def get_sync(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_sync(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_sync(self, key: str) -> None:
        raise NotImplementedError


class InMemoryStorage(KeyValueStorage):
    """Process-local storage used by tests and offline runs."""

    def __init__(self, initial: Dict[str, str] | None = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get_sync(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set_sync(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove_sync(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list:
        return sorted(self._values)


class JSONFileStorage(KeyValueStorage):
    """JSON-file-backed storage that survives process restarts."""

    def __init__(self, path: str | Path = "data/credentials.json") -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text() or "{}")
        except json.JSONDecodeError:
            LOGGER.warning("Credential file is corrupt, treating as empty", extra={"path": str(self.path)})
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, values: Dict[str, str]) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".kv-", suffix=".json")
        try:
            with os.fdopen(fd, "w") as handle:
                json.dump(values, handle, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get_sync(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return str(value) if value is not None else None

    def set_sync(self, key: str, value: str) -> None:
        values = self._load()
        values[key] = value
        self._save(values)

    def remove_sync(self, key: str) -> None:
        values = self._load()
        if key in values:
            values.pop(key)
            self._save(values)


class CredentialStore:
    """Owns the persisted ``token`` and ``userInfo`` pair.

    Absence of either key means no credential; reads never raise for it.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self.storage = storage

    def get(self) -> Optional[Credential]:
        token = self.storage.get_sync(TOKEN_KEY)
        raw_profile = self.storage.get_sync(USER_INFO_KEY)
        if not token or not raw_profile:
            return None
        try:
            profile = UserProfile.from_dict(json.loads(raw_profile))
        except (json.JSONDecodeError, TypeError, AttributeError, ValueError):
            LOGGER.warning("Stored user profile is unreadable; treating credential as absent")
            return None
        return Credential(token=token, profile=profile)

    def token(self) -> Optional[str]:
        credential = self.get()
        return credential.token if credential else None

    def put(self, credential: Credential) -> bool:
        self.storage.set_sync(USER_INFO_KEY, json.dumps(credential.profile.to_dict()))
        self.storage.set_sync(TOKEN_KEY, credential.token)
        return True

    def clear(self) -> bool:
        self.storage.remove_sync(TOKEN_KEY)
        self.storage.remove_sync(USER_INFO_KEY)
        return True


__all__ = [
    "CredentialStore",
    "InMemoryStorage",
    "JSONFileStorage",
    "KeyValueStorage",
    "TOKEN_KEY",
    "USER_INFO_KEY",
]
