"""Wardrobe client bootstrap."""

import logging
from typing import List

from client_app.config import ClientConfig
from client_app.logging_config import configure_logging, get_logger, log_event, operation_context
from logic.errors import (
    AUTH_NAVIGATION_ERRORS,
    AuthFailed,
    AuthRequired,
    BackendNotReady,
    Forbidden,
    GatewayError,
    Transport,
)
from logic.integrity import DeletionResult, ReferentialIntegrityCoordinator
from memory.auth_session import AuthSession
from memory.credential_store import CredentialStore, JSONFileStorage, KeyValueStorage
from models.wardrobe_item import WardrobeItem
from tools.backend import BackendCallError, BackendConnection, HttpBackendConnection
from tools.gateway import RemoteCallGateway
from tools.prompts import ConsolePrompter, UserPrompter
from tools.wardrobe_store import ScanRelatedOutfitFinder, WardrobeCatalog

LOGGER = get_logger(__name__)

ENV_CHECK_FUNCTION = "quickstartFunctions"


def describe_init_error(message: str) -> tuple[str, str]:
    """Map a backend initialization failure onto an alert title and body."""

    if "Environment not found" in message:
        return (
            "Environment not found",
            "The backend environment was not found. Check that the service is enabled "
            "and that ENVIRONMENT_ID matches the id shown in the console.",
        )
    if "permission" in message.lower():
        return ("Insufficient permission", "This client is not allowed to use the backend environment.")
    return (
        "Backend initialization failed",
        f"Error: {message}\n\nCheck that the service is enabled and the network is reachable.",
    )


class WardrobeClientApp:
    """Wires together the connection, session, gateway and coordinator."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        connection: BackendConnection | None = None,
        storage: KeyValueStorage | None = None,
        prompter: UserPrompter | None = None,
    ) -> None:
        self.config = config or ClientConfig.from_env()
        configure_logging()

        self.connection = connection or HttpBackendConnection(
            self.config.backend_url, timeout_seconds=self.config.request_timeout_seconds
        )
        self.prompter = prompter or ConsolePrompter()
        self.credential_store = CredentialStore(storage or JSONFileStorage(self.config.credential_store_path))
        self.session = AuthSession(
            self.connection, self.credential_store, auth_function=self.config.auth_function
        )
        self.gateway = RemoteCallGateway(
            self.connection, self.session, self.credential_store, self.prompter
        )
        self.catalog = WardrobeCatalog(
            self.gateway,
            item_collection=self.config.item_collection,
            outfit_collection=self.config.outfit_collection,
            default_image_url=self.config.default_image_url,
        )
        self.coordinator = ReferentialIntegrityCoordinator(
            self.gateway,
            ScanRelatedOutfitFinder(self.catalog),
            self.prompter,
            item_collection=self.config.item_collection,
            outfit_collection=self.config.outfit_collection,
            strict_integrity_check=self.config.strict_integrity_check,
        )
        self.items: List[WardrobeItem] = []

    def initialize(self) -> bool:
        """Connect to the configured environment; failures are shown, not raised."""

        try:
            self.connection.initialize(self.config.environment_id or None)
        except BackendCallError as exc:
            log_event(LOGGER, logging.ERROR, "backend_init_failed", err_msg=exc.err_msg)
            self._show_init_error(exc.err_msg)
            return False
        log_event(LOGGER, logging.INFO, "backend_init_completed", environment_id=self.config.environment_id or "default")
        return True

    def verify_environment(self) -> bool:
        """Probe the environment with the check function.

        A missing check function is tolerated. A missing environment or a
        permission error marks the connection not ready.
        """

        if not self.connection.is_ready:
            log_event(LOGGER, logging.WARNING, "env_check_skipped", reason="not_initialized")
            return False

        try:
            self.gateway.invoke(ENV_CHECK_FUNCTION, {"type": "checkEnv"}, skip_auth=True)
        except (Transport, Forbidden) as exc:
            message = exc.message
            if "FunctionName" in message:
                log_event(LOGGER, logging.WARNING, "env_check_function_missing", function=ENV_CHECK_FUNCTION)
                return True
            if "Environment not found" in message or isinstance(exc, Forbidden):
                self.connection.mark_unready(message)
                self._show_init_error(message)
                return False
            log_event(LOGGER, logging.WARNING, "env_check_inconclusive", err_msg=message)
            return True
        except GatewayError as exc:
            log_event(LOGGER, logging.WARNING, "env_check_inconclusive", error_code=exc.error_code)
            return True
        log_event(LOGGER, logging.INFO, "env_check_passed")
        return True

    def _show_init_error(self, message: str) -> None:
        # Without an explicit environment id the failure is only logged.
        if not self.config.environment_id:
            return
        title, content = describe_init_error(message)
        self.prompter.alert(title, content)

    def refresh_items(self) -> List[WardrobeItem]:
        """Reload the cached item list; on failure keep the stale cache."""

        with operation_context("app:refresh_items"):
            try:
                self.items = self.catalog.load_items()
            except GatewayError as exc:
                self.present_error(exc)
        return self.items

    def ensure_signed_in(self) -> bool:
        """Log in when no credential is stored; failures are presented."""

        if self.gateway.has_active_session():
            return True
        try:
            self.session.auto_login()
        except (AuthFailed, BackendNotReady) as exc:
            self.present_error(exc)
            return False
        return True

    def delete_item(self, item_id: str) -> DeletionResult:
        with operation_context("app:delete_item"):
            if not self.ensure_signed_in():
                return DeletionResult(status="auth_required", error=AuthRequired())
            try:
                result = self.coordinator.delete_item(item_id)
            except GatewayError as exc:
                self.present_error(exc)
                return DeletionResult(status="failed", error=exc)
            if result.refresh_required:
                self.refresh_items()
            return result

    def present_error(self, exc: GatewayError) -> None:
        """Surface a terminal failure as a modal or a toast; never silently."""

        log_event(LOGGER, logging.WARNING, "error_presented", error_code=exc.error_code)
        if isinstance(exc, BackendNotReady):
            self.prompter.alert("Backend not ready", "The backend connection is not initialized yet.")
        elif isinstance(exc, AuthFailed):
            self.prompter.alert("Sign-in failed", exc.message)
        elif isinstance(exc, AUTH_NAVIGATION_ERRORS):
            self.prompter.alert("Sign-in required", exc.message)
        elif exc.user_visible_as == "modal":
            self.prompter.alert("Something went wrong", exc.message)
        else:
            self.prompter.toast(f"Load failed: {exc.message}")


__all__ = ["WardrobeClientApp", "describe_init_error"]
