"""Authenticated entry point for every backend call."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from client_app.logging_config import get_logger, log_event
from logic.errors import (
    AuthExpired,
    AuthFailed,
    AuthRequired,
    BackendNotReady,
    Forbidden,
    Transport,
)
from logic.validation import result_status
from memory.auth_session import AuthSession
from memory.credential_store import CredentialStore
from tools.backend import BackendCallError, BackendConnection, BatchOperation, OrderBy
from tools.observability import instrument_call
from tools.prompts import UserPrompter

LOGGER = get_logger(__name__)

TOKEN_FIELD = "token"
CAPABILITY_FIELD = "requiredCapability"
CODE_TOKEN_INVALID = 401
CODE_FORBIDDEN = 403
SESSION_EXPIRED_MESSAGE = "Your session has expired, please sign in again"


def is_permission_error(exc: BackendCallError) -> bool:
    """Transport failures mentioning permission are authorization, not network."""

    return "permission" in (exc.err_msg or "").lower() or exc.err_code == CODE_FORBIDDEN


class RemoteCallGateway:
    """Wraps backend primitives with token attachment and error mapping.

    Missing credentials trigger at most one implicit ``auto_login`` per call.
    A ``401``, as a result code or an HTTP status, clears the stored
    credential; a ``403`` never does.
    """

    def __init__(
        self,
        connection: BackendConnection,
        session: AuthSession,
        credential_store: CredentialStore,
        prompter: UserPrompter,
    ) -> None:
        self.connection = connection
        self.session = session
        self.credential_store = credential_store
        self.prompter = prompter

    def has_active_session(self) -> bool:
        """Local check only; never contacts the backend."""

        return self.credential_store.token() is not None

    def _require_ready(self) -> None:
        if not self.connection.is_ready:
            raise BackendNotReady()

    def _require_login(self, reason: str) -> AuthRequired:
        self.session.logout()
        self.prompter.navigate_to_login(reason)
        return AuthRequired(details={"reason": reason})

    def _ensure_token(self) -> str:
        """Return a token, running one bounded re-authentication if needed."""

        token = self.credential_store.token()
        if token:
            return token

        log_event(LOGGER, logging.INFO, "implicit_login_attempt")
        try:
            self.session.auto_login()
        except (AuthFailed, BackendNotReady) as exc:
            raise self._require_login("auto_login_failed") from exc

        token = self.credential_store.token()
        if not token:
            raise self._require_login("no_token_after_login")
        return token

    def _expire_session(self, message: str | None, details: Dict[str, Any]) -> AuthExpired:
        self.session.logout()
        self.prompter.navigate_to_login("token_invalidated")
        return AuthExpired(message or SESSION_EXPIRED_MESSAGE, details=details)

    def _translate(self, exc: BackendCallError, operation: str) -> Exception:
        if exc.err_code == CODE_TOKEN_INVALID:
            return self._expire_session(exc.err_msg, {"operation": operation})
        if is_permission_error(exc):
            return Forbidden(exc.err_msg, details={"operation": operation, "err_code": exc.err_code})
        return Transport(exc.err_msg, details={"operation": operation, "err_code": exc.err_code})

    @instrument_call("invoke")
    def invoke(
        self,
        name: str,
        payload: Optional[Dict[str, Any]] = None,
        *,
        skip_auth: bool = False,
        required_capability: Optional[int] = None,
    ) -> Any:
        """Call a remote function and return its ``result`` untouched."""

        self._require_ready()

        outbound: Dict[str, Any] = dict(payload or {})
        if not skip_auth:
            outbound[TOKEN_FIELD] = self._ensure_token()
        if required_capability is not None:
            outbound[CAPABILITY_FIELD] = required_capability

        try:
            response = self.connection.call_function(name, outbound)
        except BackendCallError as exc:
            raise self._translate(exc, f"function:{name}") from exc

        result = response.get("result")
        code, message = result_status(result)
        if code == CODE_TOKEN_INVALID:
            raise self._expire_session(message, {"function": name})
        if code == CODE_FORBIDDEN:
            raise Forbidden(message or "You do not have permission to do this", details={"function": name})
        return result

    def _document_access(self, ensure_session: bool) -> Optional[str]:
        self._require_ready()
        if ensure_session:
            return self._ensure_token()
        return self.credential_store.token()

    @instrument_call("query")
    def query(
        self,
        collection: str,
        where: Optional[Dict[str, Any]] = None,
        order_by: Optional[OrderBy] = None,
        *,
        ensure_session: bool = True,
    ) -> List[Dict[str, Any]]:
        token = self._document_access(ensure_session)
        try:
            return self.connection.query(collection, where=where, order_by=order_by, token=token)
        except BackendCallError as exc:
            raise self._translate(exc, f"query:{collection}") from exc

    @instrument_call("get_document")
    def get_document(
        self, collection: str, doc_id: str, *, ensure_session: bool = True
    ) -> Optional[Dict[str, Any]]:
        token = self._document_access(ensure_session)
        try:
            return self.connection.get(collection, doc_id, token=token)
        except BackendCallError as exc:
            raise self._translate(exc, f"get:{collection}") from exc

    @instrument_call("commit_batch")
    def commit_batch(self, operations: List[BatchOperation], *, ensure_session: bool = True) -> None:
        """Apply writes atomically; an empty batch is a no-op."""

        if not operations:
            return
        token = self._document_access(ensure_session)
        try:
            self.connection.commit_batch(operations, token=token)
        except BackendCallError as exc:
            raise self._translate(exc, "batch") from exc


__all__ = ["RemoteCallGateway", "is_permission_error"]
