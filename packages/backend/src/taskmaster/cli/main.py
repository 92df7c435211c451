"""Taskmaster CLI — log in and manage your tasks from the terminal.

Usage:
    taskmaster register "Ada Lovelace" ada@example.com   # Create account, store token
    taskmaster login ada@example.com                     # Store a fresh token
    taskmaster tasks --status PENDING                    # List tasks
    taskmaster add "Write report" --priority HIGH --due 2030-01-31
    taskmaster done 42                                   # Mark completed
    taskmaster reopen 42                                 # Back to pending
    taskmaster delete 42
    taskmaster overdue                                   # Pending tasks past due
    taskmaster stats                                     # Counts per status
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
import httpx

from taskmaster import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"

STATUSES = ["PENDING", "COMPLETED"]
PRIORITIES = ["LOW", "MEDIUM", "HIGH"]


def _api_url() -> str:
    return os.environ.get("TASKMASTER_API_URL", DEFAULT_API_URL).rstrip("/")


def _token_path() -> Path:
    return Path.home() / ".taskmaster" / "token"


def _load_token() -> Optional[str]:
    """TASKMASTER_TOKEN wins over the stored token file."""
    token = os.environ.get("TASKMASTER_TOKEN")
    if token:
        return token.strip()
    path = _token_path()
    if path.exists():
        return path.read_text().strip() or None
    return None


def _save_token(token: str) -> Path:
    path = _token_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(token)
    path.chmod(0o600)
    return path


def _client(authenticated: bool = True) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the Taskmaster backend."""
    headers = {}
    if authenticated:
        token = _load_token()
        if token is None:
            click.secho(
                "Error: not logged in. Run `taskmaster login` or set TASKMASTER_TOKEN.",
                fg="red",
                err=True,
            )
            sys.exit(1)
        headers["Authorization"] = f"Bearer {token}"
    return httpx.AsyncClient(
        base_url=_api_url(),
        headers=headers,
        timeout=30.0,
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _check(r: httpx.Response) -> httpx.Response:
    """Exit with the server's error message on a non-2xx response."""
    if r.is_success:
        return r
    try:
        message = r.json().get("message", r.text)
    except ValueError:
        message = r.text
    click.secho(f"Error ({r.status_code}): {message}", fg="red", err=True)
    sys.exit(1)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(
            str(row.get(k) if row.get(k) is not None else "—")[:w].ljust(w)
            for _, k, w in columns
        )
        click.echo(line)


_TASK_COLUMNS = [
    ("ID", "id", 6),
    ("Status", "status", 10),
    ("Priority", "priority", 8),
    ("Due", "due_date", 20),
    ("Title", "title", 40),
]


def _print_tasks(tasks: list[dict], empty: str = "No tasks."):
    if not tasks:
        click.echo(empty)
        return
    _print_table(tasks, _TASK_COLUMNS)


def _status_color(status: str) -> str:
    return {"PENDING": "yellow", "COMPLETED": "green"}.get(status, "white")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="taskmaster")
def main():
    """Taskmaster — personal task management from the command line."""


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@main.command()
@click.argument("name")
@click.argument("email")
@click.password_option()
def register(name: str, email: str, password: str):
    """Create an account and store its token."""
    _run(_login_impl("/api/auth/register", {"name": name, "email": email, "password": password}))


@main.command()
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True)
def login(email: str, password: str):
    """Log in and store the token."""
    _run(_login_impl("/api/auth/login", {"email": email, "password": password}))


async def _login_impl(path: str, body: dict):
    async with _client(authenticated=False) as c:
        r = _check(await c.post(path, json=body))
    data = r.json()
    stored = _save_token(data["token"])
    click.secho(f"Logged in as {data['name']} <{data['email']}>", fg="green")
    click.echo(f"Token saved to {stored}")


@main.command()
def whoami():
    """Show the account the current token belongs to."""
    _run(_whoami_impl())


async def _whoami_impl():
    async with _client() as c:
        r = _check(await c.get("/api/auth/me"))
    user = r.json()
    click.echo(f"{user['name']} <{user['email']}> (id {user['id']})")


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@main.command()
@click.option("--status", "-s", type=click.Choice(STATUSES, case_sensitive=False))
@click.option("--priority", "-p", type=click.Choice(PRIORITIES, case_sensitive=False))
def tasks(status: Optional[str], priority: Optional[str]):
    """List your tasks."""
    _run(_tasks_impl(status, priority))


async def _tasks_impl(status: Optional[str], priority: Optional[str]):
    params = {}
    if status:
        params["status"] = status.upper()
    if priority:
        params["priority"] = priority.upper()
    async with _client() as c:
        r = _check(await c.get("/api/tasks", params=params))
    _print_tasks(r.json())


@main.command()
@click.argument("title")
@click.option("--description", "-d", help="Longer description")
@click.option(
    "--priority", "-p",
    type=click.Choice(PRIORITIES, case_sensitive=False),
    default="MEDIUM",
    show_default=True,
)
@click.option(
    "--due",
    type=click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M", "%Y-%m-%dT%H:%M:%S"]),
    help="Due date (UTC)",
)
def add(title: str, description: Optional[str], priority: str, due: Optional[datetime]):
    """Create a task."""
    _run(_add_impl(title, description, priority, due))


async def _add_impl(title: str, description: Optional[str], priority: str,
                    due: Optional[datetime]):
    body: dict = {"title": title, "priority": priority.upper()}
    if description:
        body["description"] = description
    if due:
        body["due_date"] = due.isoformat()
    async with _client() as c:
        r = _check(await c.post("/api/tasks", json=body))
    task = r.json()
    click.secho(f"Task #{task['id']} created: {task['title']}", fg="green")


@main.command()
@click.argument("task_id", type=int)
def done(task_id: int):
    """Mark a task completed."""
    _run(_set_status_impl(task_id, "COMPLETED"))


@main.command()
@click.argument("task_id", type=int)
def reopen(task_id: int):
    """Move a completed task back to pending."""
    _run(_set_status_impl(task_id, "PENDING"))


async def _set_status_impl(task_id: int, status: str):
    async with _client() as c:
        r = _check(await c.patch(f"/api/tasks/{task_id}/status", json={"status": status}))
    task = r.json()
    status_str = click.style(task["status"], fg=_status_color(task["status"]))
    click.echo(f"Task #{task['id']}: {status_str}")


@main.command()
@click.argument("task_id", type=int)
@click.confirmation_option(prompt="Delete this task?")
def delete(task_id: int):
    """Delete a task."""
    _run(_delete_impl(task_id))


async def _delete_impl(task_id: int):
    async with _client() as c:
        _check(await c.delete(f"/api/tasks/{task_id}"))
    click.echo(f"Task #{task_id} deleted")


@main.command()
def overdue():
    """List pending tasks whose due date has passed."""
    _run(_overdue_impl())


async def _overdue_impl():
    async with _client() as c:
        r = _check(await c.get("/api/tasks/overdue"))
    _print_tasks(r.json(), empty="Nothing overdue.")


@main.command()
def stats():
    """Show task counts per status."""
    _run(_stats_impl())


async def _stats_impl():
    async with _client() as c:
        r = _check(await c.get("/api/tasks/stats"))
    data = r.json()
    click.echo(f"Pending:   {data['pending']}")
    click.echo(f"Completed: {data['completed']}")
    click.echo(f"Total:     {data['total']}")


if __name__ == "__main__":
    main()
