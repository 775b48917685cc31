"""CLI tests — click commands against a canned HTTP transport.

Learn: The CLI talks to the API through cli.main._client(). Patching it to
add an httpx.MockTransport lets each test script the server's answers and
inspect exactly what the CLI sent, without running a server.
"""

import json

import httpx
import pytest
from click.testing import CliRunner

from notekeeper.cli import main as cli_main

USER = {"id": "u-1", "name": "Ada", "email": "ada@example.com", "role": "user"}
NOTE = {
    "id": "n-1",
    "owner_id": "u-1",
    "author_id": "u-1",
    "content": "buy milk",
    "created_at": "2024-01-01T10:00:00Z",
    "updated_at": "2024-01-01T10:00:00Z",
}


@pytest.fixture()
def session_file(tmp_path, monkeypatch):
    path = tmp_path / "session.json"
    monkeypatch.setenv("NOTEKEEPER_SESSION_FILE", str(path))
    monkeypatch.setenv("NOTEKEEPER_API_URL", "http://api.test")
    return path


@pytest.fixture()
def api(monkeypatch):
    """Install a scripted API. Returns (routes dict, list of seen requests)."""
    routes: dict[tuple[str, str], httpx.Response] = {}
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        key = (request.method, request.url.path)
        if key not in routes:
            return httpx.Response(404, json={"message": "Not Found"})
        return routes[key]

    original = cli_main._client
    monkeypatch.setattr(
        cli_main,
        "_client",
        lambda **kwargs: original(transport=httpx.MockTransport(handler), **kwargs),
    )
    return routes, seen


def test_login_saves_session_cookie(api, session_file):
    routes, seen = api
    routes[("POST", "/auth/login")] = httpx.Response(
        200,
        json={"message": "Login successful", "user": USER},
        headers={"set-cookie": "token=abc123; Path=/; HttpOnly; SameSite=lax"},
    )

    result = CliRunner().invoke(
        cli_main.main, ["login", "--email", "ada@example.com", "--password", "secret1"]
    )
    assert result.exit_code == 0, result.output
    assert "Login successful" in result.output
    assert json.loads(session_file.read_text()) == {"token": "abc123"}
    assert json.loads(seen[0].content) == {"email": "ada@example.com", "password": "secret1"}


def test_signup_as_admin_sends_role(api, session_file):
    routes, seen = api
    routes[("POST", "/auth/signup")] = httpx.Response(
        201,
        json={"message": "Signup successful", "user": {**USER, "role": "admin"}},
        headers={"set-cookie": "token=xyz; Path=/; HttpOnly"},
    )

    result = CliRunner().invoke(
        cli_main.main,
        ["signup", "--name", "Ada", "--email", "ada@example.com",
         "--password", "secret1", "--admin"],
    )
    assert result.exit_code == 0, result.output
    assert json.loads(seen[0].content)["role"] == "admin"
    assert session_file.exists()


def test_notes_sends_saved_cookie_and_filters(api, session_file):
    routes, seen = api
    session_file.write_text(json.dumps({"token": "abc123"}))
    routes[("GET", "/notes")] = httpx.Response(
        200, json={"notes": [NOTE], "page": 1, "limit": 10, "total": 1}
    )

    result = CliRunner().invoke(
        cli_main.main, ["notes", "--q", "milk", "--sort-by", "updatedAt", "--order", "asc"]
    )
    assert result.exit_code == 0, result.output
    assert "buy milk" in result.output
    assert "1 total" in result.output

    request = seen[0]
    assert "token=abc123" in request.headers["cookie"]
    assert request.url.params["q"] == "milk"
    assert request.url.params["sortBy"] == "updatedAt"
    assert "userId" not in request.url.params


def test_notes_json_output(api, session_file):
    routes, _ = api
    routes[("GET", "/notes")] = httpx.Response(
        200, json={"notes": [NOTE], "page": 1, "limit": 10, "total": 1}
    )
    result = CliRunner().invoke(cli_main.main, ["notes", "--json"])
    assert result.exit_code == 0
    assert json.loads(result.output)["total"] == 1


def test_add_for_other_user_sends_user_id(api, session_file):
    routes, seen = api
    routes[("POST", "/notes")] = httpx.Response(201, json={"note": NOTE})

    result = CliRunner().invoke(cli_main.main, ["add", "buy milk", "--user-id", "u-2"])
    assert result.exit_code == 0, result.output
    assert "Created note n-1" in result.output
    assert json.loads(seen[0].content) == {"content": "buy milk", "userId": "u-2"}


def test_api_error_exits_nonzero(api, session_file):
    routes, _ = api
    routes[("POST", "/admin/users/u-9/ban")] = httpx.Response(
        403, json={"message": "Cannot ban admin users"}
    )

    result = CliRunner().invoke(cli_main.main, ["ban", "u-9"])
    assert result.exit_code == 1
    assert "Error (403): Cannot ban admin users" in result.output


def test_users_banned_flag_becomes_query_param(api, session_file):
    routes, seen = api
    routes[("GET", "/admin/users")] = httpx.Response(
        200, json={"users": [], "page": 1, "limit": 20, "total": 0}
    )

    result = CliRunner().invoke(cli_main.main, ["users", "--banned"])
    assert result.exit_code == 0
    assert "No users." in result.output
    assert seen[0].url.params["banned"] == "true"


def test_logout_clears_session(api, session_file):
    routes, _ = api
    session_file.write_text(json.dumps({"token": "abc123"}))
    routes[("POST", "/auth/logout")] = httpx.Response(200, json={"message": "Logged out"})

    result = CliRunner().invoke(cli_main.main, ["logout"])
    assert result.exit_code == 0
    assert "Logged out" in result.output
    assert not session_file.exists()
