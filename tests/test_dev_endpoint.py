import re

import pytest


GITHUB_USER = {
    "id": 9001,
    "login": "headless-dev",
    "email": "dev@example.com",
    "avatar_url": "https://avatars.githubusercontent.com/u/9001",
}


def _create_session(client, token="ghp_personal_token", github_user=None):
    return client.post(
        "/dev/create-session",
        json={"github_token": token, "github_user": github_user or GITHUB_USER},
    )


@pytest.mark.parametrize(
    "method,path",
    [("POST", "/dev/create-session"), ("POST", "/dev/seed"), ("GET", "/dev/status")],
)
def test_dev_routes_forbidden_in_production_expected(make_api_client, settings_factory, method, path):
    client = make_api_client(settings_factory(environment="production"))

    resp = client.request(method, path, json={})

    assert resp.status_code == 403
    assert resp.json() == {"error": "This endpoint is only available in development"}


def test_create_session_requires_token_and_user_expected(api_client):
    no_user = api_client.post("/dev/create-session", json={"github_token": "ghp_x"})
    no_token = api_client.post("/dev/create-session", json={"github_user": GITHUB_USER})
    empty_token = _create_session(api_client, token="")

    for resp in (no_user, no_token, empty_token):
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing github_token or github_user"}


def test_create_session_returns_usable_session_expected(api_client):
    resp = _create_session(api_client)

    assert resp.status_code == 200
    payload = resp.json()
    assert re.fullmatch(r"[0-9a-f]{64}", payload["session_id"])
    assert payload["username"] == "headless-dev"
    assert isinstance(payload["user_id"], int)
    assert payload["expires_at"].endswith("Z")

    me = api_client.get("/auth/me", headers={"Cookie": f"session_id={payload['session_id']}"})
    assert me.status_code == 200
    assert me.json()["user"]["id"] == payload["user_id"]


def test_create_session_upserts_same_user_expected(api_client):
    first = _create_session(api_client).json()
    second = _create_session(api_client, github_user={**GITHUB_USER, "login": "renamed-dev"}).json()

    assert first["user_id"] == second["user_id"]
    assert first["session_id"] != second["session_id"]
    assert second["username"] == "renamed-dev"


def test_seed_requires_valid_session_expected(api_client):
    missing = api_client.post("/dev/seed")
    bogus = api_client.post("/dev/seed", headers={"Cookie": "session_id=bogus"})

    assert missing.status_code == 401
    assert missing.json() == {"error": "Not authenticated"}
    assert bogus.status_code == 401


def test_seed_replaces_data_and_keeps_builtins_expected(api_client):
    session_id = _create_session(api_client).json()["session_id"]
    api_client.post("/profiles", json={"name": "Throwaway", "preferences": {}})

    resp = api_client.post("/dev/seed", headers={"Cookie": f"session_id={session_id}"})

    assert resp.status_code == 200
    assert resp.json() == {
        "message": "Database seeded successfully",
        "data": {"users": 2, "repositories": 3, "profiles": 2},
    }

    status = api_client.get("/dev/status").json()
    assert status == {"database": {"users": 2, "repositories": 3, "profiles": 8, "sessions": 0}}

    names = {profile["name"] for profile in api_client.get("/profiles").json()}
    assert "Throwaway" not in names
    assert {"Strict TypeScript", "Relaxed JavaScript", "PEP 8"} <= names


def test_seed_twice_is_stable_expected(api_client, login_as):
    first_session = login_as()
    api_client.post("/dev/seed", headers={"Cookie": f"session_id={first_session}"})

    second_session = login_as(github_id=31337, login="second")
    resp = api_client.post("/dev/seed", headers={"Cookie": f"session_id={second_session}"})

    assert resp.status_code == 200
    assert api_client.get("/dev/status").json()["database"]["profiles"] == 8


def test_status_counts_fresh_database_expected(api_client):
    resp = api_client.get("/dev/status")

    assert resp.status_code == 200
    assert resp.json() == {"database": {"users": 0, "repositories": 0, "profiles": 6, "sessions": 0}}
