"""Notekeeper CLI — manage notes and accounts from the terminal.

Usage:
    notekeeper serve                              # Run the API with uvicorn
    notekeeper signup --name Ada --email a@x.com  # Create an account (prompts for password)
    notekeeper login --email a@x.com              # Start a session
    notekeeper whoami                             # Show the current account
    notekeeper add "buy milk"                     # Create a note
    notekeeper notes --q milk --order asc         # List/search your notes
    notekeeper edit <note-id> "buy oat milk"      # Update a note
    notekeeper rm <note-id>                       # Delete a note
    notekeeper users --banned                     # Admin: list banned accounts
    notekeeper ban <user-id>                      # Admin: ban an account
    notekeeper logout                             # End the session

The session cookie is kept in ~/.notekeeper/session.json (override with
NOTEKEEPER_SESSION_FILE). The API base URL comes from NOTEKEEPER_API_URL.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from pathlib import Path
from typing import Optional

import click
import httpx

from notekeeper import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:4000"
DEFAULT_SESSION_FILE = "~/.notekeeper/session.json"


def _api_url() -> str:
    return os.environ.get("NOTEKEEPER_API_URL", DEFAULT_API_URL).rstrip("/")


def _session_path() -> Path:
    return Path(os.environ.get("NOTEKEEPER_SESSION_FILE", DEFAULT_SESSION_FILE)).expanduser()


def _load_session() -> dict[str, str]:
    path = _session_path()
    if not path.exists():
        return {}
    try:
        return json.loads(path.read_text())
    except (OSError, ValueError):
        return {}


def _save_session(cookies: dict[str, str]) -> None:
    path = _session_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cookies))
    path.chmod(0o600)


def _clear_session() -> None:
    _session_path().unlink(missing_ok=True)


def _client(**kwargs) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the API, carrying the saved session."""
    return httpx.AsyncClient(
        base_url=_api_url(), timeout=30.0, cookies=_load_session(), **kwargs
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


def _check(r: httpx.Response) -> dict:
    """Return the JSON body, or print the API's message and exit 1."""
    if r.is_error:
        try:
            message = r.json().get("message", r.text)
        except ValueError:
            message = r.text
        click.secho(f"Error ({r.status_code}): {message}", fg="red", err=True)
        sys.exit(1)
    return r.json()


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "—"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _page_footer(data: dict) -> None:
    shown = len(data.get("notes") or data.get("users") or [])
    click.echo(f"\npage {data['page']} · {shown} shown · {data['total']} total")


def _list_params(**values) -> dict:
    return {k: v for k, v in values.items() if v is not None}


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="notekeeper")
def main():
    """Notekeeper — personal notes with admin moderation."""


@main.command()
@click.option("--host", default=None, help="Bind address (default from settings)")
@click.option("--port", default=None, type=int, help="Port (default from settings)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from notekeeper.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "notekeeper.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command()
def health():
    """Check API and dependency health."""
    _run(_health_impl())


async def _health_impl():
    async with _client() as c:
        data = _check(await c.get("/health"))
    color = "green" if data["status"] == "healthy" else "yellow"
    click.secho(f"{data['status']} (v{data['version']})", fg=color, bold=True)
    for key in ("server", "database", "redis"):
        click.echo(f"  {key:<9} {data.get(key)}")


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


@main.command()
@click.option("--name", required=True)
@click.option("--email", required=True)
@click.password_option()
@click.option("--admin", is_flag=True, help="Register as an admin (demo)")
def signup(name: str, email: str, password: str, admin: bool):
    """Create an account and start a session."""
    _run(_auth_impl("/auth/signup", {
        "name": name,
        "email": email,
        "password": password,
        "role": "admin" if admin else "user",
    }))


@main.command()
@click.option("--email", required=True)
@click.option("--password", prompt=True, hide_input=True)
def login(email: str, password: str):
    """Log in and save the session cookie."""
    _run(_auth_impl("/auth/login", {"email": email, "password": password}))


async def _auth_impl(path: str, body: dict):
    async with _client() as c:
        r = await c.post(path, json=body)
        data = _check(r)
    _save_session(dict(r.cookies))
    user = data["user"]
    click.secho(f"{data['message']}: {user['name']} <{user['email']}> ({user['role']})", fg="green")


@main.command()
def logout():
    """End the session and forget the cookie."""
    _run(_logout_impl())


async def _logout_impl():
    async with _client() as c:
        data = _check(await c.post("/auth/logout"))
    _clear_session()
    click.echo(data["message"])


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Raw JSON output")
def whoami(as_json: bool):
    """Show the logged-in account."""
    _run(_whoami_impl(as_json))


async def _whoami_impl(as_json: bool):
    async with _client() as c:
        data = _check(await c.get("/auth/me"))
    user = data["user"]
    if as_json:
        click.echo(_pretty_json(user))
        return
    click.echo(f"{user['name']} <{user['email']}>")
    click.echo(f"  id:     {user['id']}")
    click.echo(f"  role:   {user['role']}")
    if user.get("banned"):
        click.secho("  banned: yes", fg="red")


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


@main.command()
@click.option("--q", help="Search text")
@click.option("--page", type=int)
@click.option("--limit", type=int)
@click.option("--sort-by", type=click.Choice(["createdAt", "updatedAt"]))
@click.option("--order", type=click.Choice(["asc", "desc"]))
@click.option("--created-from")
@click.option("--created-to")
@click.option("--updated-from")
@click.option("--updated-to")
@click.option("--user-id", help="Owner (admins only)")
@click.option("--json", "as_json", is_flag=True, help="Raw JSON output")
def notes(q, page, limit, sort_by, order, created_from, created_to,
          updated_from, updated_to, user_id, as_json):
    """List notes."""
    params = _list_params(
        q=q, page=page, limit=limit, sortBy=sort_by, order=order,
        createdFrom=created_from, createdTo=created_to,
        updatedFrom=updated_from, updatedTo=updated_to, userId=user_id,
    )
    _run(_notes_impl(params, as_json))


async def _notes_impl(params: dict, as_json: bool):
    async with _client() as c:
        data = _check(await c.get("/notes", params=params))
    if as_json:
        click.echo(_pretty_json(data))
        return
    if not data["notes"]:
        click.echo("No notes.")
        return
    _print_table(data["notes"], [
        ("ID", "id", 36),
        ("UPDATED", "updated_at", 19),
        ("CONTENT", "content", 50),
    ])
    _page_footer(data)


@main.command()
@click.argument("content")
@click.option("--user-id", help="Create for another user (admins only)")
def add(content: str, user_id: Optional[str]):
    """Create a note."""
    body = {"content": content}
    if user_id:
        body["userId"] = user_id
    _run(_note_write_impl("post", "/notes", body, "Created"))


@main.command()
@click.argument("note_id")
def show(note_id: str):
    """Show one note."""
    _run(_show_impl(note_id))


async def _show_impl(note_id: str):
    async with _client() as c:
        note = _check(await c.get(f"/notes/{note_id}"))["note"]
    click.secho(f"Note {note['id']}", bold=True)
    click.echo(f"  created: {note['created_at']}")
    click.echo(f"  updated: {note['updated_at']}")
    click.echo()
    click.echo(note["content"])


@main.command()
@click.argument("note_id")
@click.argument("content")
def edit(note_id: str, content: str):
    """Replace a note's content."""
    _run(_note_write_impl("put", f"/notes/{note_id}", {"content": content}, "Updated"))


async def _note_write_impl(method: str, path: str, body: dict, verb: str):
    async with _client() as c:
        note = _check(await c.request(method.upper(), path, json=body))["note"]
    click.secho(f"{verb} note {note['id']}", fg="green")


@main.command()
@click.argument("note_id")
def rm(note_id: str):
    """Delete a note."""
    _run(_simple_impl("delete", f"/notes/{note_id}"))


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@main.command()
@click.option("--q", help="Search name or email")
@click.option("--role", type=click.Choice(["user", "admin"]))
@click.option("--banned/--not-banned", default=None)
@click.option("--page", type=int)
@click.option("--limit", type=int)
@click.option("--sort-by", type=click.Choice(["createdAt", "updatedAt"]))
@click.option("--order", type=click.Choice(["asc", "desc"]))
@click.option("--created-from")
@click.option("--created-to")
@click.option("--json", "as_json", is_flag=True, help="Raw JSON output")
def users(q, role, banned, page, limit, sort_by, order, created_from, created_to, as_json):
    """List non-admin accounts (admins only)."""
    params = _list_params(
        q=q, role=role, page=page, limit=limit, sortBy=sort_by, order=order,
        createdFrom=created_from, createdTo=created_to,
        banned=None if banned is None else str(banned).lower(),
    )
    _run(_users_impl(params, as_json))


async def _users_impl(params: dict, as_json: bool):
    async with _client() as c:
        data = _check(await c.get("/admin/users", params=params))
    if as_json:
        click.echo(_pretty_json(data))
        return
    if not data["users"]:
        click.echo("No users.")
        return
    rows = [{**u, "status": "banned" if u["banned"] else "active"} for u in data["users"]]
    _print_table(rows, [
        ("ID", "id", 36),
        ("NAME", "name", 20),
        ("EMAIL", "email", 28),
        ("STATUS", "status", 7),
    ])
    _page_footer(data)


@main.command()
@click.argument("user_id")
def ban(user_id: str):
    """Ban an account (admins only)."""
    _run(_simple_impl("post", f"/admin/users/{user_id}/ban"))


@main.command()
@click.argument("user_id")
def unban(user_id: str):
    """Unban an account (admins only)."""
    _run(_simple_impl("post", f"/admin/users/{user_id}/unban"))


async def _simple_impl(method: str, path: str):
    async with _client() as c:
        data = _check(await c.request(method.upper(), path))
    click.secho(data["message"], fg="green")


if __name__ == "__main__":
    main()
