"""Error taxonomy surfaced by the gateway and the deletion coordinator."""

from __future__ import annotations

from typing import Any, Dict, Optional


class GatewayError(Exception):
    """Base error for every terminal failure of a backend interaction."""

    error_code = "GATEWAY_ERROR"
    user_visible_as = "toast"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class BackendNotReady(GatewayError):
    """The backend connection has not completed initialization."""

    error_code = "BACKEND_NOT_READY"
    user_visible_as = "modal"

    def __init__(self, message: str = "Backend connection is not initialized", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)


class AuthFailed(GatewayError):
    """The identity exchange was rejected."""

    error_code = "AUTH_FAILED"
    user_visible_as = "modal"


class AuthRequired(GatewayError):
    """No credential is available and implicit login did not produce one."""

    error_code = "AUTH_REQUIRED"
    user_visible_as = "modal"

    def __init__(self, message: str = "Please sign in to continue", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)


class AuthExpired(GatewayError):
    """The backend reported the token as invalid mid-flight (code 401)."""

    error_code = "AUTH_EXPIRED"
    user_visible_as = "modal"

    def __init__(self, message: str = "Your session has expired, please sign in again", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)


class Forbidden(GatewayError):
    # Never invalidates stored credentials.
    error_code = "FORBIDDEN"


class Transport(GatewayError):
    """Any transport failure that is not permission-flavored."""

    error_code = "TRANSPORT"


class DeletionFailed(GatewayError):
    """The atomic delete batch was rejected; cached lists are stale."""

    error_code = "DELETION_FAILED"


class IntegrityCheckFailed(GatewayError):
    """Related outfits could not be determined, so no delete was attempted."""

    error_code = "INTEGRITY_CHECK_FAILED"
    user_visible_as = "modal"


AUTH_NAVIGATION_ERRORS = (AuthRequired, AuthExpired)


__all__ = [
    "AUTH_NAVIGATION_ERRORS",
    "AuthExpired",
    "AuthFailed",
    "AuthRequired",
    "BackendNotReady",
    "DeletionFailed",
    "Forbidden",
    "GatewayError",
    "IntegrityCheckFailed",
    "Transport",
]
