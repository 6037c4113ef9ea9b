"""Credential and user profile records held by the credential store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class UserProfile:
    """Identity of the signed-in user; opaque beyond ``user_id``."""

    user_id: str
    display_name: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {**self.extra, "id": self.user_id, "displayName": self.display_name}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "UserProfile":
        user_id = payload.get("id") or payload.get("_id") or payload.get("openid")
        if not user_id:
            raise ValueError("User profile payload is missing an id")
        extra = {k: v for k, v in payload.items() if k not in {"id", "displayName"}}
        return cls(
            user_id=str(user_id),
            display_name=str(payload.get("displayName") or payload.get("nickName") or ""),
            extra=extra,
        )


@dataclass
class Credential:
    token: str
    profile: UserProfile

    def __post_init__(self) -> None:
        if not self.token:
            raise ValueError("Credential requires a non-empty token")


__all__ = ["Credential", "UserProfile"]
