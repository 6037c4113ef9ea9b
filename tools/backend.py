"""Backend connection abstractions: lifecycle, functions and document store."""

from __future__ import annotations

import copy
import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple

import requests

from logic.validation import QueryRequest

LOGGER = logging.getLogger(__name__)

OrderBy = Tuple[str, Literal["asc", "desc"]]


class BackendCallError(Exception):
    """Failure of a backend primitive before any structured result exists."""

    def __init__(self, err_msg: str, err_code: Optional[int | str] = None) -> None:
        self.err_msg = err_msg
        self.err_code = err_code
        super().__init__(err_msg)


@dataclass
class BatchOperation:
    """One write inside an atomic batch."""

    kind: Literal["delete", "update"]
    collection: str
    doc_id: str
    patch: Dict[str, Any] = field(default_factory=dict)

    def wire(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"kind": self.kind, "collection": self.collection, "docId": self.doc_id}
        if self.kind == "update":
            payload["patch"] = self.patch
        return payload


class BackendConnection(ABC):
    """Managed backend handle; every primitive requires :attr:`is_ready`."""

    def __init__(self) -> None:
        self._ready = False
        self.environment_id: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self._ready

    def mark_unready(self, reason: str) -> None:
        LOGGER.warning("Backend connection marked not ready", extra={"reason": reason})
        self._ready = False

    @abstractmethod
    def initialize(self, environment_id: str | None = None) -> bool:
        """Connect to the environment and flip the readiness flag."""

    @abstractmethod
    def call_function(self, name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Invoke a remote function and return ``{"result": ...}``."""

    @abstractmethod
    def get(self, collection: str, doc_id: str, token: str | None = None) -> Optional[Dict[str, Any]]:
        """Fetch one document or ``None`` when it does not exist."""

    @abstractmethod
    def query(
        self,
        collection: str,
        where: Dict[str, Any] | None = None,
        order_by: OrderBy | None = None,
        token: str | None = None,
    ) -> List[Dict[str, Any]]:
        """Return documents whose fields equal every ``where`` entry."""

    @abstractmethod
    def add(self, collection: str, document: Dict[str, Any], token: str | None = None) -> str:
        """Insert a document and return its id."""

    @abstractmethod
    def update(self, collection: str, doc_id: str, patch: Dict[str, Any], token: str | None = None) -> None:
        """Apply a shallow patch to one document."""

    @abstractmethod
    def remove(self, collection: str, doc_id: str, token: str | None = None) -> None:
        """Delete one document."""

    @abstractmethod
    def commit_batch(self, operations: List[BatchOperation], token: str | None = None) -> None:
        """Apply all operations or none of them."""


class HttpBackendConnection(BackendConnection):
    """Backend connection speaking the REST convention of the managed service."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__()
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        env = self.environment_id or "default"
        return f"{self.base_url}/{env}{path}"

    def _request(self, method: str, path: str, json_body: Any = None, token: str | None = None) -> Any:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            response = self.session.request(
                method, self._url(path), json=json_body, headers=headers, timeout=self.timeout_seconds
            )
        except requests.RequestException as exc:
            LOGGER.error("Backend unreachable", extra={"method": method, "path": path}, exc_info=exc)
            raise BackendCallError(f"request:fail {exc}") from exc

        if response.status_code >= 400:
            raise BackendCallError(self._error_message(response), err_code=response.status_code)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise BackendCallError("response:fail invalid JSON body") from exc

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("errMsg"):
            return str(body["errMsg"])
        return f"HTTP {response.status_code}: {response.text[:200]}"

    def initialize(self, environment_id: str | None = None) -> bool:
        self.environment_id = environment_id or None
        self._ready = False
        self._request("GET", "/status")
        self._ready = True
        LOGGER.info("Backend connection initialized", extra={"environment_id": self.environment_id or "default"})
        return True

    def call_function(self, name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = self._request("POST", f"/functions/{name}", payload)
        if not isinstance(body, dict) or "result" not in body:
            raise BackendCallError(f"callFunction:fail malformed response from {name}")
        return body

    def get(self, collection: str, doc_id: str, token: str | None = None) -> Optional[Dict[str, Any]]:
        try:
            body = self._request("GET", f"/collections/{collection}/documents/{doc_id}", token=token)
        except BackendCallError as exc:
            if exc.err_code == 404:
                return None
            raise
        return body.get("data") if isinstance(body, dict) else None

    def query(
        self,
        collection: str,
        where: Dict[str, Any] | None = None,
        order_by: OrderBy | None = None,
        token: str | None = None,
    ) -> List[Dict[str, Any]]:
        body = QueryRequest(where=where or {}, order_by=order_by).wire()
        result = self._request("POST", f"/collections/{collection}/query", body, token=token)
        data = result.get("data") if isinstance(result, dict) else None
        if not isinstance(data, list):
            raise BackendCallError(f"query:fail malformed response for {collection}")
        return data

    def add(self, collection: str, document: Dict[str, Any], token: str | None = None) -> str:
        result = self._request("POST", f"/collections/{collection}/documents", {"data": document}, token=token)
        return str(result["_id"])

    def update(self, collection: str, doc_id: str, patch: Dict[str, Any], token: str | None = None) -> None:
        self._request("PATCH", f"/collections/{collection}/documents/{doc_id}", {"data": patch}, token=token)

    def remove(self, collection: str, doc_id: str, token: str | None = None) -> None:
        self._request("DELETE", f"/collections/{collection}/documents/{doc_id}", token=token)

    def commit_batch(self, operations: List[BatchOperation], token: str | None = None) -> None:
        self._request("POST", "/batch", {"operations": [op.wire() for op in operations]}, token=token)


FunctionHandler = Callable[[Dict[str, Any]], Any]


class InMemoryBackendConnection(BackendConnection):
    """Offline deterministic backend for tests and local runs.

    Function handlers receive the payload and return the ``result`` value.
    Handlers may raise :class:`BackendCallError` to simulate transport
    failures. ``fail_next`` queues a failure for the next call to a primitive.
    Document primitives record the token they were called with in
    ``document_tokens``.
    """

    def __init__(self, ready: bool = False) -> None:
        super().__init__()
        self._ready = ready
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.functions: Dict[str, FunctionHandler] = {}
        self.function_calls: List[Tuple[str, Dict[str, Any]]] = []
        self.write_log: List[Tuple[str, str, str]] = []
        self.document_tokens: List[Tuple[str, Optional[str]]] = []
        self._pending_failures: Dict[str, List[BackendCallError]] = {}
        self._ids = itertools.count(1)

    def register_function(self, name: str, handler: FunctionHandler) -> None:
        self.functions[name] = handler

    def fail_next(self, primitive: str, error: BackendCallError) -> None:
        self._pending_failures.setdefault(primitive, []).append(error)

    def _maybe_fail(self, primitive: str) -> None:
        queued = self._pending_failures.get(primitive)
        if queued:
            raise queued.pop(0)

    def _document_call(self, primitive: str, token: str | None) -> None:
        self.document_tokens.append((primitive, token))
        self._maybe_fail(primitive)

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self.collections.setdefault(name, {})

    def seed(self, collection: str, documents: List[Dict[str, Any]]) -> None:
        store = self._collection(collection)
        for document in documents:
            doc_id = str(document.get("_id") or f"doc-{next(self._ids)}")
            store[doc_id] = {**copy.deepcopy(document), "_id": doc_id}

    def initialize(self, environment_id: str | None = None) -> bool:
        self._maybe_fail("initialize")
        self.environment_id = environment_id or None
        self._ready = True
        return True

    def call_function(self, name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.function_calls.append((name, copy.deepcopy(payload)))
        self._maybe_fail("call_function")
        handler = self.functions.get(name)
        if handler is None:
            raise BackendCallError(
                f"cloud.callFunction:fail FunctionName parameter could not be found: {name}",
                err_code=-501000,
            )
        return {"result": handler(copy.deepcopy(payload))}

    def get(self, collection: str, doc_id: str, token: str | None = None) -> Optional[Dict[str, Any]]:
        self._document_call("get", token)
        document = self._collection(collection).get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    def query(
        self,
        collection: str,
        where: Dict[str, Any] | None = None,
        order_by: OrderBy | None = None,
        token: str | None = None,
    ) -> List[Dict[str, Any]]:
        self._document_call("query", token)
        where = where or {}
        matches = [
            copy.deepcopy(doc)
            for doc in self._collection(collection).values()
            if all(doc.get(key) == value for key, value in where.items())
        ]
        if order_by:
            field_name, direction = order_by
            matches.sort(key=lambda doc: str(doc.get(field_name) or ""), reverse=direction == "desc")
        return matches

    def add(self, collection: str, document: Dict[str, Any], token: str | None = None) -> str:
        self._document_call("add", token)
        doc_id = str(document.get("_id") or f"doc-{next(self._ids)}")
        self._collection(collection)[doc_id] = {**copy.deepcopy(document), "_id": doc_id}
        self.write_log.append(("add", collection, doc_id))
        return doc_id

    def update(self, collection: str, doc_id: str, patch: Dict[str, Any], token: str | None = None) -> None:
        self._document_call("update", token)
        document = self._collection(collection).get(doc_id)
        if document is None:
            raise BackendCallError(f"document.update:fail document {doc_id} does not exist")
        document.update(copy.deepcopy(patch))
        self.write_log.append(("update", collection, doc_id))

    def remove(self, collection: str, doc_id: str, token: str | None = None) -> None:
        self._document_call("remove", token)
        if self._collection(collection).pop(doc_id, None) is None:
            raise BackendCallError(f"document.remove:fail document {doc_id} does not exist")
        self.write_log.append(("delete", collection, doc_id))

    def commit_batch(self, operations: List[BatchOperation], token: str | None = None) -> None:
        self._document_call("commit_batch", token)
        for op in operations:
            if op.doc_id not in self._collection(op.collection):
                raise BackendCallError(
                    f"batch:fail document {op.doc_id} does not exist in {op.collection}"
                )
        for op in operations:
            store = self._collection(op.collection)
            if op.kind == "delete":
                store.pop(op.doc_id)
            else:
                store[op.doc_id].update(copy.deepcopy(op.patch))
            self.write_log.append((op.kind, op.collection, op.doc_id))


__all__ = [
    "BackendCallError",
    "BackendConnection",
    "BatchOperation",
    "HttpBackendConnection",
    "InMemoryBackendConnection",
]
