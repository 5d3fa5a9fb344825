import json

import httpx
import pytest

from services.cli.app import client as client_module
from services.cli.app.client import StyleCheckAPIError, StyleCheckClient


def _client_with(handler, **kwargs):
    requests = []

    def _recording_handler(request):
        requests.append(request)
        return handler(request)

    http_client = httpx.Client(transport=httpx.MockTransport(_recording_handler))
    return StyleCheckClient(api_url="http://api.test/", http_client=http_client, **kwargs), requests


def test_requests_carry_session_cookie_and_bearer_token_expected():
    client, requests = _client_with(
        lambda _request: httpx.Response(200, json={"user": {"id": 1}}),
        session_id="sess-1",
        github_token="ghp_token",
    )

    assert client.get_current_user() == {"user": {"id": 1}}

    request = requests[0]
    assert str(request.url) == "http://api.test/auth/me"
    assert request.headers["cookie"] == "session_id=sess-1"
    assert request.headers["authorization"] == "Bearer ghp_token"


def test_anonymous_requests_have_no_auth_headers_expected():
    client, requests = _client_with(lambda _request: httpx.Response(200, json=[]))

    client.list_profiles()

    assert "cookie" not in requests[0].headers
    assert "authorization" not in requests[0].headers


def test_server_error_message_is_surfaced_expected():
    client, _ = _client_with(lambda _request: httpx.Response(401, json={"error": "Not authenticated"}))

    with pytest.raises(StyleCheckAPIError) as excinfo:
        client.get_current_user()

    assert str(excinfo.value) == "Not authenticated"
    assert excinfo.value.status_code == 401


def test_error_without_body_uses_status_line_expected():
    client, _ = _client_with(lambda _request: httpx.Response(502, text="upstream down"))

    with pytest.raises(StyleCheckAPIError) as excinfo:
        client.get_database_status()

    assert str(excinfo.value) == "HTTP 502: Bad Gateway"


def test_logout_forgets_session_expected():
    client, requests = _client_with(
        lambda _request: httpx.Response(200, json={"message": "Logged out successfully"}),
        session_id="sess-1",
    )

    client.logout()
    client.list_profiles()

    assert requests[0].method == "POST"
    assert requests[0].headers["cookie"] == "session_id=sess-1"
    assert "cookie" not in requests[1].headers
    assert client.session_id is None


def test_create_session_fetches_user_then_remembers_session_expected(monkeypatch):
    monkeypatch.setattr(client_module, "fetch_github_user", lambda token: {"id": 5, "login": "octocat"})

    def _handler(request):
        if request.url.path == "/dev/create-session":
            return httpx.Response(
                200,
                json={
                    "session_id": "new-session",
                    "user_id": 1,
                    "username": "octocat",
                    "expires_at": "2026-11-18T00:00:00Z",
                },
            )
        return httpx.Response(200, json={"database": {}})

    client, requests = _client_with(_handler)

    result = client.create_session("ghp_pat")
    client.get_database_status()

    assert result["session_id"] == "new-session"
    assert json.loads(requests[0].content) == {
        "github_token": "ghp_pat",
        "github_user": {"id": 5, "login": "octocat"},
    }
    assert requests[1].headers["cookie"] == "session_id=new-session"


def test_profile_helpers_hit_expected_routes_expected():
    client, requests = _client_with(lambda _request: httpx.Response(200, json={"message": "ok"}))

    client.get_profile(3)
    client.create_profile({"name": "Mine", "preferences": {}})
    client.update_profile(3, {"description": "x"})
    client.delete_profile(3)

    assert [(r.method, r.url.path) for r in requests] == [
        ("GET", "/profiles/3"),
        ("POST", "/profiles"),
        ("PUT", "/profiles/3"),
        ("DELETE", "/profiles/3"),
    ]
    assert json.loads(requests[2].content) == {"description": "x"}


def test_call_returns_status_without_raising_expected():
    client, _ = _client_with(lambda _request: httpx.Response(404, json={"error": "Profile not found"}))

    status_code, data = client.call("get", "/profiles/99")

    assert status_code == 404
    assert data == {"error": "Profile not found"}


def test_client_against_running_api_expected(monkeypatch, api_client):
    monkeypatch.setattr(client_module, "fetch_github_user", lambda token: {"id": 77, "login": "integration"})
    client = StyleCheckClient(api_url="http://testserver", http_client=api_client)

    client.create_session("ghp_integration")
    me = client.get_current_user()
    created = client.create_profile({"name": "From Client", "preferences": {"naming": {"classes": "PascalCase"}}})

    assert me["user"]["username"] == "integration"
    assert client.get_profile(created["id"])["preferences"] == {"naming": {"classes": "PascalCase"}}

    with pytest.raises(StyleCheckAPIError) as excinfo:
        client.delete_profile(client.list_profiles()[0]["id"])
    assert str(excinfo.value) == "Cannot delete built-in profiles"
