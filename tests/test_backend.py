"""HTTP and in-memory backend connections."""

from __future__ import annotations

import json
from typing import Any, List

import pytest
import requests

from tools.backend import (
    BackendCallError,
    BatchOperation,
    HttpBackendConnection,
    InMemoryBackendConnection,
)


class _FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, text: str | None = None) -> None:
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else (json.dumps(body) if body is not None else "")
        self.content = self.text.encode()

    def json(self) -> Any:
        if self._body is None:
            raise ValueError("no JSON body")
        return self._body


class _FakeSession:
    def __init__(self, responses: List[Any]) -> None:
        self.responses = list(responses)
        self.requests: List[tuple] = []
        self.headers: List[dict] = []

    def request(self, method, url, json=None, headers=None, timeout=None):
        self.requests.append((method, url, json, timeout))
        self.headers.append(headers or {})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _connection(*responses: Any) -> tuple[HttpBackendConnection, _FakeSession]:
    session = _FakeSession(list(responses))
    return HttpBackendConnection("http://backend/", timeout_seconds=3.0, session=session), session


def test_initialize_targets_environment_and_sets_ready() -> None:
    connection, session = _connection(_FakeResponse(200, {"status": "ok"}))

    assert connection.initialize("env-1") is True
    assert connection.is_ready
    assert session.requests == [("GET", "http://backend/env-1/status", None, 3.0)]


def test_initialize_failure_surfaces_err_msg() -> None:
    connection, _ = _connection(_FakeResponse(404, {"errMsg": "Environment not found"}))

    with pytest.raises(BackendCallError) as excinfo:
        connection.initialize("env-x")

    assert excinfo.value.err_msg == "Environment not found"
    assert excinfo.value.err_code == 404
    assert not connection.is_ready


def test_error_without_body_uses_status_text() -> None:
    connection, _ = _connection(_FakeResponse(502, text="Bad gateway"))

    with pytest.raises(BackendCallError) as excinfo:
        connection.call_function("login", {})
    assert excinfo.value.err_msg.startswith("HTTP 502")


def test_network_error_becomes_backend_call_error() -> None:
    connection, _ = _connection(requests.ConnectionError("connection refused"))

    with pytest.raises(BackendCallError) as excinfo:
        connection.call_function("login", {})
    assert excinfo.value.err_msg.startswith("request:fail")


def test_call_function_posts_payload_to_default_environment() -> None:
    connection, session = _connection(_FakeResponse(200, {"result": {"code": 0}}))

    assert connection.call_function("login", {"action": "autoLogin"}) == {"result": {"code": 0}}
    assert session.requests[0][:3] == ("POST", "http://backend/default/functions/login", {"action": "autoLogin"})


def test_call_function_rejects_envelope_without_result() -> None:
    connection, _ = _connection(_FakeResponse(200, {"data": []}))

    with pytest.raises(BackendCallError):
        connection.call_function("login", {})


def test_missing_document_reads_as_none() -> None:
    connection, _ = _connection(_FakeResponse(404, {"errMsg": "not found"}))

    assert connection.get("items", "ghost") is None


def test_query_sends_filter_and_order() -> None:
    connection, session = _connection(_FakeResponse(200, {"data": [{"_id": "a"}]}))

    documents = connection.query("items", where={"category": "top"}, order_by=("createTime", "desc"))

    assert documents == [{"_id": "a"}]
    assert session.requests[0][2] == {
        "where": {"category": "top"},
        "orderBy": {"field": "createTime", "direction": "desc"},
    }


def test_batch_wire_format() -> None:
    connection, session = _connection(_FakeResponse(204))

    connection.commit_batch(
        [
            BatchOperation(kind="delete", collection="items", doc_id="a"),
            BatchOperation(kind="update", collection="outfits", doc_id="o1", patch={"items": []}),
        ]
    )

    assert session.requests[0][2] == {
        "operations": [
            {"kind": "delete", "collection": "items", "docId": "a"},
            {"kind": "update", "collection": "outfits", "docId": "o1", "patch": {"items": []}},
        ]
    }


def test_in_memory_batch_is_all_or_nothing() -> None:
    backend = InMemoryBackendConnection(ready=True)
    backend.seed("items", [{"_id": "a"}])

    with pytest.raises(BackendCallError):
        backend.commit_batch(
            [
                BatchOperation(kind="delete", collection="items", doc_id="a"),
                BatchOperation(kind="delete", collection="outfits", doc_id="missing"),
            ]
        )

    assert "a" in backend.collections["items"]
    assert backend.write_log == []


def test_in_memory_unknown_function_reports_function_name() -> None:
    backend = InMemoryBackendConnection(ready=True)

    with pytest.raises(BackendCallError) as excinfo:
        backend.call_function("quickstartFunctions", {"type": "checkEnv"})

    assert "FunctionName" in excinfo.value.err_msg
    assert excinfo.value.err_code == -501000


def test_in_memory_query_orders_and_filters() -> None:
    backend = InMemoryBackendConnection(ready=True)
    backend.seed(
        "items",
        [
            {"_id": "old", "category": "top", "createTime": "2024-01-01"},
            {"_id": "new", "category": "top", "createTime": "2024-02-01"},
            {"_id": "other", "category": "bottom", "createTime": "2024-03-01"},
        ],
    )

    documents = backend.query("items", where={"category": "top"}, order_by=("createTime", "desc"))

    assert [doc["_id"] for doc in documents] == ["new", "old"]


def test_document_requests_send_bearer_token() -> None:
    connection, session = _connection(_FakeResponse(204), _FakeResponse(200, {"data": []}))

    connection.commit_batch([BatchOperation(kind="delete", collection="items", doc_id="i1")], token="secret-tok")
    connection.query("items", token="secret-tok")

    assert session.headers == [{"Authorization": "Bearer secret-tok"}] * 2


def test_requests_without_token_send_no_authorization() -> None:
    connection, session = _connection(_FakeResponse(200, {"status": "ok"}))

    connection.initialize()

    assert session.headers == [{}]
