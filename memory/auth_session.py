"""Session lifecycle: auto-login, logout and the cached user profile."""
from __future__ import annotations

import enum
import logging
from typing import Optional

from pydantic import ValidationError

from client_app.logging_config import get_logger, log_event
from logic.errors import AuthFailed, BackendNotReady
from logic.validation import LoginResult
from memory.credential_store import CredentialStore
from models.credential import Credential, UserProfile
from tools.backend import BackendCallError, BackendConnection

LOGGER = get_logger(__name__)


class SessionState(str, enum.Enum):
    LOGGED_OUT = "LOGGED_OUT"
    LOGGED_IN = "LOGGED_IN"


class AuthSession:
    """Owns the token held by the credential store.

    One instance is built at process start and passed to whatever needs
    identity. A credential found in the store at construction restores the
    ``LOGGED_IN`` state without contacting the backend.
    """

    def __init__(
        self,
        connection: BackendConnection,
        credential_store: CredentialStore,
        auth_function: str = "login",
    ) -> None:
        self.connection = connection
        self.credential_store = credential_store
        self.auth_function = auth_function
        self.login_attempts = 0
        stored = credential_store.get()
        self._profile: Optional[UserProfile] = stored.profile if stored else None

    @property
    def profile(self) -> Optional[UserProfile]:
        return self._profile if self.is_logged_in else None

    @property
    def is_logged_in(self) -> bool:
        return self._profile is not None and self.credential_store.get() is not None

    @property
    def state(self) -> SessionState:
        return SessionState.LOGGED_IN if self.is_logged_in else SessionState.LOGGED_OUT

    def auto_login(self) -> UserProfile:
        """Exchange platform identity for a token, or return the cached profile."""

        if self.is_logged_in:
            return self._profile  # type: ignore[return-value]

        if not self.connection.is_ready:
            raise BackendNotReady()

        self.login_attempts += 1
        log_event(LOGGER, logging.INFO, "auto_login_started", function=self.auth_function)
        try:
            response = self.connection.call_function(self.auth_function, {"action": "autoLogin"})
            result = LoginResult.model_validate(response.get("result"))
            if result.code != 0:
                raise AuthFailed(result.message or "Login was rejected", details={"code": result.code})
            profile = UserProfile.from_dict(result.user_info)
        except BackendCallError as exc:
            log_event(LOGGER, logging.WARNING, "auto_login_failed", reason="transport", err_msg=exc.err_msg)
            raise AuthFailed(f"Login call failed: {exc.err_msg}") from exc
        except (ValidationError, ValueError) as exc:
            log_event(LOGGER, logging.WARNING, "auto_login_failed", reason="invalid_result")
            raise AuthFailed("Login returned an invalid result") from exc

        self.credential_store.put(Credential(token=result.token, profile=profile))
        self._profile = profile
        log_event(LOGGER, logging.INFO, "auto_login_completed", user_id=profile.user_id)
        return profile

    def logout(self) -> None:
        """Drop the stored credential and the in-memory profile."""

        self._profile = None
        try:
            self.credential_store.clear()
        except OSError:
            log_event(LOGGER, logging.ERROR, "credential_clear_failed", exc_info=True)
        log_event(LOGGER, logging.INFO, "session_logged_out")


__all__ = ["AuthSession", "SessionState"]
