"""CLI tests — click's CliRunner against a mocked backend.

Learn: httpx.MockTransport answers the CLI's requests in-process, so
these tests check what the CLI sends (paths, bodies, bearer token) and
how it prints responses, without a running server.
"""

import json

import httpx
import pytest
from click.testing import CliRunner

from taskmaster.cli import main as cli

TASK = {
    "id": 1,
    "title": "Buy milk",
    "description": None,
    "status": "PENDING",
    "priority": "LOW",
    "created_at": "2026-01-01T12:00:00Z",
    "updated_at": "2026-01-01T12:00:00Z",
    "due_date": None,
    "completed_at": None,
    "owner_id": 7,
    "is_overdue": False,
    "days_until_due": None,
}

LOGIN = {
    "token": "tok-123",
    "token_type": "Bearer",
    "user_id": 7,
    "name": "Alice",
    "email": "alice@example.com",
    "user_created_at": "2026-01-01T12:00:00Z",
}


@pytest.fixture()
def backend(monkeypatch, tmp_path):
    """Route the CLI's HTTP calls to a handler; returns the request log."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("TASKMASTER_TOKEN", raising=False)
    monkeypatch.setenv("TASKMASTER_API_URL", "http://taskmaster.test")
    seen: list[httpx.Request] = []
    routes: dict[tuple[str, str], httpx.Response] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        key = (request.method, request.url.path)
        if key in routes:
            canned = routes[key]
            return httpx.Response(
                canned.status_code, content=canned.content, headers=canned.headers
            )
        return httpx.Response(404, json={"message": "Not Found"})

    real_client = httpx.AsyncClient

    class MockedClient(real_client):
        def __init__(self, *args, **kwargs):
            kwargs["transport"] = httpx.MockTransport(handler)
            super().__init__(*args, **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", MockedClient)
    return routes, seen


@pytest.fixture()
def runner():
    return CliRunner()


def test_login_stores_token(runner, backend, tmp_path):
    routes, seen = backend
    routes[("POST", "/api/auth/login")] = httpx.Response(200, json=LOGIN)

    result = runner.invoke(cli.main, ["login", "alice@example.com", "--password", "secret1"])
    assert result.exit_code == 0, result.output
    assert "Logged in as Alice" in result.output
    assert (tmp_path / ".taskmaster" / "token").read_text() == "tok-123"
    assert json.loads(seen[0].content) == {"email": "alice@example.com", "password": "secret1"}
    assert "Authorization" not in seen[0].headers


def test_register_stores_token(runner, backend, tmp_path):
    routes, seen = backend
    routes[("POST", "/api/auth/register")] = httpx.Response(201, json=LOGIN)

    result = runner.invoke(
        cli.main, ["register", "Alice", "alice@example.com", "--password", "secret1"]
    )
    assert result.exit_code == 0, result.output
    assert json.loads(seen[0].content)["name"] == "Alice"
    assert (tmp_path / ".taskmaster" / "token").exists()


def test_login_failure_shows_message(runner, backend):
    routes, _ = backend
    routes[("POST", "/api/auth/login")] = httpx.Response(
        401, json={"message": "Invalid email or password", "error_code": "INVALID_CREDENTIALS"}
    )
    result = runner.invoke(cli.main, ["login", "alice@example.com", "--password", "nope"])
    assert result.exit_code == 1
    assert "Invalid email or password" in result.output


def test_tasks_requires_login(runner, backend):
    result = runner.invoke(cli.main, ["tasks"])
    assert result.exit_code == 1
    assert "not logged in" in result.output


def test_tasks_sends_bearer_and_filters(runner, backend, monkeypatch):
    routes, seen = backend
    monkeypatch.setenv("TASKMASTER_TOKEN", "env-token")
    routes[("GET", "/api/tasks")] = httpx.Response(200, json=[TASK])

    result = runner.invoke(cli.main, ["tasks", "--status", "pending", "-p", "LOW"])
    assert result.exit_code == 0, result.output
    assert "Buy milk" in result.output
    request = seen[0]
    assert request.headers["Authorization"] == "Bearer env-token"
    assert request.url.params["status"] == "PENDING"
    assert request.url.params["priority"] == "LOW"


def test_add_task(runner, backend, monkeypatch):
    routes, seen = backend
    monkeypatch.setenv("TASKMASTER_TOKEN", "env-token")
    routes[("POST", "/api/tasks")] = httpx.Response(201, json=TASK)

    result = runner.invoke(
        cli.main, ["add", "Buy milk", "--priority", "low", "--due", "2030-01-31"]
    )
    assert result.exit_code == 0, result.output
    assert "Task #1 created" in result.output
    assert json.loads(seen[0].content) == {
        "title": "Buy milk",
        "priority": "LOW",
        "due_date": "2030-01-31T00:00:00",
    }


def test_done_and_reopen(runner, backend, monkeypatch):
    routes, seen = backend
    monkeypatch.setenv("TASKMASTER_TOKEN", "env-token")
    routes[("PATCH", "/api/tasks/1/status")] = httpx.Response(
        200, json={**TASK, "status": "COMPLETED"}
    )

    result = runner.invoke(cli.main, ["done", "1"])
    assert result.exit_code == 0, result.output
    assert json.loads(seen[0].content) == {"status": "COMPLETED"}

    runner.invoke(cli.main, ["reopen", "1"])
    assert json.loads(seen[1].content) == {"status": "PENDING"}


def test_delete_not_found(runner, backend, monkeypatch):
    routes, _ = backend
    monkeypatch.setenv("TASKMASTER_TOKEN", "env-token")
    routes[("DELETE", "/api/tasks/9")] = httpx.Response(
        404, json={"message": "Task with ID 9 not found", "error_code": "TASK_NOT_FOUND"}
    )
    result = runner.invoke(cli.main, ["delete", "9", "--yes"])
    assert result.exit_code == 1
    assert "Task with ID 9 not found" in result.output


def test_overdue_empty(runner, backend, monkeypatch):
    routes, _ = backend
    monkeypatch.setenv("TASKMASTER_TOKEN", "env-token")
    routes[("GET", "/api/tasks/overdue")] = httpx.Response(200, json=[])

    result = runner.invoke(cli.main, ["overdue"])
    assert result.exit_code == 0
    assert "Nothing overdue." in result.output


def test_stored_token_used(runner, backend, tmp_path):
    routes, seen = backend
    (tmp_path / ".taskmaster").mkdir()
    (tmp_path / ".taskmaster" / "token").write_text("file-token\n")
    routes[("GET", "/api/tasks/stats")] = httpx.Response(
        200, json={"pending": 2, "completed": 1, "total": 3}
    )

    result = runner.invoke(cli.main, ["stats"])
    assert result.exit_code == 0, result.output
    assert "Total:     3" in result.output
    assert seen[0].headers["Authorization"] == "Bearer file-token"
