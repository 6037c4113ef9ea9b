"""Pydantic schemas and helpers for validating backend payloads."""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class LoginResult(BaseModel):
    """Result contract of the identity-exchange function."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    code: int = 0
    token: str = Field(min_length=1)
    user_info: Dict[str, Any] = Field(alias="userInfo")
    message: Optional[str] = None


class ResultStatus(BaseModel):
    """Status fields a function result may carry next to its payload."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    code: Optional[int] = None
    err_code: Optional[int] = Field(default=None, alias="errCode")
    message: Any = None
    err_msg: Any = Field(default=None, alias="errMsg")


class QueryRequest(BaseModel):
    """Document query envelope sent to the backend."""

    model_config = ConfigDict(populate_by_name=True)

    where: Dict[str, Any] = Field(default_factory=dict)
    order_by: Optional[Tuple[str, str]] = Field(default=None, alias="orderBy")

    def wire(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"where": self.where}
        if self.order_by:
            payload["orderBy"] = {"field": self.order_by[0], "direction": self.order_by[1]}
        return payload


def result_status(result: Any) -> Tuple[Optional[int], Optional[str]]:
    """Return ``(code, message)`` from a function result, if it carries one.

    ``code`` wins over ``errCode``. Results that are not mappings, or whose
    code is not numeric, report no code and are passed through untouched.
    """

    if not isinstance(result, dict):
        return None, None
    try:
        status = ResultStatus.model_validate(result)
    except ValidationError:
        return None, None
    code = status.code if status.code is not None else status.err_code
    message = status.message if status.message is not None else status.err_msg
    return code, str(message) if message is not None else None


__all__ = ["LoginResult", "QueryRequest", "ResultStatus", "result_status"]
