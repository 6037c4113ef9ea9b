"""
Wiring and environment bootstrap tests for the wardrobe client app.
These run entirely against the in-memory backend.
"""

from pathlib import Path

import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from client_app.app import WardrobeClientApp, describe_init_error
from client_app.config import ClientConfig
from conftest import accept_login
import main as cli
from memory.credential_store import InMemoryStorage
from models.wardrobe_item import DEFAULT_IMAGE_URL, DEFAULT_PRICE
from tools.backend import BackendCallError, InMemoryBackendConnection
from tools.prompts import ScriptedPrompter


def _app(environment_id: str = "env-1", answers=None, ready: bool = False):
    backend = InMemoryBackendConnection(ready=ready)
    backend.register_function("login", accept_login)
    prompter = ScriptedPrompter(answers)
    config = ClientConfig(environment_id=environment_id)
    app = WardrobeClientApp(config, connection=backend, storage=InMemoryStorage(), prompter=prompter)
    return app, backend, prompter


def test_initialize_marks_connection_ready() -> None:
    app, backend, prompter = _app()

    assert app.initialize() is True
    assert backend.is_ready
    assert backend.environment_id == "env-1"
    assert prompter.calls == []


def test_initialize_failure_alerts_with_environment_hint() -> None:
    app, backend, prompter = _app()
    backend.fail_next("initialize", BackendCallError("Environment not found"))

    assert app.initialize() is False
    assert not backend.is_ready
    assert prompter.calls[0][0] == "alert"
    assert prompter.calls[0][1][0] == "Environment not found"


def test_initialize_failure_without_environment_id_only_logs() -> None:
    app, backend, prompter = _app(environment_id="")
    backend.fail_next("initialize", BackendCallError("Environment not found"))

    assert app.initialize() is False
    assert prompter.calls == []


@pytest.mark.parametrize(
    "message, title",
    [
        ("Environment not found", "Environment not found"),
        ("cloud.init:fail permission denied", "Insufficient permission"),
        ("request:fail timeout", "Backend initialization failed"),
    ],
)
def test_describe_init_error(message: str, title: str) -> None:
    assert describe_init_error(message)[0] == title


def test_missing_check_function_is_only_a_warning() -> None:
    app, backend, prompter = _app(ready=True)

    assert app.verify_environment() is True
    assert backend.is_ready
    assert prompter.calls == []


def _raise(message: str):
    def handler(payload):
        raise BackendCallError(message)

    return handler


@pytest.mark.parametrize(
    "message, title",
    [
        ("Environment not found: env-1", "Environment not found"),
        ("cloud.callFunction:fail permission denied", "Insufficient permission"),
    ],
)
def test_environment_failures_mark_connection_unready(message: str, title: str) -> None:
    app, backend, prompter = _app(ready=True)
    backend.register_function("quickstartFunctions", _raise(message))

    assert app.verify_environment() is False
    assert not backend.is_ready
    assert prompter.calls[0][1][0] == title


def test_other_check_failures_keep_connection_ready() -> None:
    app, backend, prompter = _app(ready=True)
    backend.register_function("quickstartFunctions", _raise("request:fail timeout"))

    assert app.verify_environment() is True
    assert backend.is_ready
    assert prompter.calls == []


def test_check_sends_no_token() -> None:
    app, backend, _ = _app(ready=True)
    backend.register_function("quickstartFunctions", lambda payload: {"ok": True})

    assert app.verify_environment() is True
    assert backend.function_calls == [("quickstartFunctions", {"type": "checkEnv"})]


def test_refresh_items_applies_defaults_newest_first() -> None:
    app, backend, _ = _app(ready=True)
    backend.seed(
        "items",
        [
            {"_id": "old", "name": "Coat", "price": "120.00", "imageUrl": "/img/coat.png", "createTime": "2024-01-01"},
            {"_id": "new", "name": "Tee", "createTime": "2024-03-01"},
        ],
    )

    items = app.refresh_items()

    assert [item.item_id for item in items] == ["new", "old"]
    assert items[0].price == DEFAULT_PRICE
    assert items[0].image_url == DEFAULT_IMAGE_URL
    assert items[1].image_url == "/img/coat.png"


def test_refresh_failure_keeps_stale_items_and_toasts() -> None:
    app, backend, prompter = _app(ready=True)
    backend.seed("items", [{"_id": "a", "name": "Scarf"}])
    app.refresh_items()

    backend.fail_next("query", BackendCallError("request:fail timeout"))
    items = app.refresh_items()

    assert [item.item_id for item in items] == ["a"]
    assert prompter.kinds()[-1] == "toast"
    assert prompter.calls[-1][1][0].startswith("Load failed")


def test_malformed_item_documents_are_skipped() -> None:
    app, backend, _ = _app(ready=True)
    backend.collections["items"] = {"bad": {"name": "no id"}, "ok": {"_id": "ok", "name": "Belt"}}

    assert [item.item_id for item in app.refresh_items()] == ["ok"]


def test_delete_refreshes_cached_items() -> None:
    app, backend, _ = _app(ready=True, answers=[True])
    backend.seed("items", [{"_id": "a", "name": "Scarf"}, {"_id": "b", "name": "Belt"}])
    app.session.auto_login()
    app.refresh_items()

    result = app.delete_item("a")

    assert result.ok
    assert [item.item_id for item in app.items] == ["b"]


def test_delete_on_unready_backend_alerts() -> None:
    app, backend, prompter = _app(ready=True)
    app.session.auto_login()
    backend.mark_unready("lost")

    result = app.delete_item("a")

    assert result.status == "failed"
    assert prompter.calls[-1][1][0] == "Backend not ready"


def test_offline_cli_lists_demo_items(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("APP_CONFIG_PATH", raising=False)

    assert cli.main(["--offline", "items"]) == 0

    lines = capsys.readouterr().out.strip().splitlines()
    assert [line.split("\t")[0] for line in lines] == ["item-3", "item-2", "item-1"]
    assert lines[1].endswith(DEFAULT_PRICE)


def test_check_rejecting_token_is_inconclusive() -> None:
    app, backend, _ = _app(ready=True)
    backend.register_function("quickstartFunctions", lambda payload: {"code": 401})

    assert app.verify_environment() is True


def test_delete_signs_in_first_when_no_credential() -> None:
    app, backend, _ = _app(ready=True, answers=[True])
    backend.seed("items", [{"_id": "a", "name": "Scarf"}])

    result = app.delete_item("a")

    assert result.ok
    assert [name for name, _ in backend.function_calls] == ["login"]
    assert "a" not in backend.collections["items"]


def test_delete_reports_failed_sign_in() -> None:
    app, backend, prompter = _app(ready=True, answers=[True])
    backend.register_function("login", lambda payload: {"code": 5, "message": "blocked", "token": "x", "userInfo": {"id": "u1"}})
    backend.seed("items", [{"_id": "a", "name": "Scarf"}])

    result = app.delete_item("a")

    assert result.status == "auth_required"
    assert prompter.calls == [("alert", ("Sign-in failed", "blocked"))]
    assert backend.write_log == []


def test_offline_cli_deletes_item_and_outfits(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("APP_CONFIG_PATH", raising=False)
    answers = ["1", "y"]
    monkeypatch.setattr("builtins.input", lambda prompt="": answers.pop(0))

    assert cli.main(["--offline", "delete", "item-3"]) == 0

    out = capsys.readouterr().out
    assert "Deletion deleted" in out
    assert answers == []
