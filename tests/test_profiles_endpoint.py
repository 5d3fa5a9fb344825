from services.api.app.routers import profiles as profiles_router


BUILTIN_NAMES_SORTED = ["Google Style", "Minimal", "PEP 8", "Pragmatic", "Strict", "Type-Safe"]


def _builtin_id(client, name):
    for profile in client.get("/profiles").json():
        if profile["name"] == name:
            return profile["id"]
    raise AssertionError(f"profile {name!r} not found")


def _create(client, **overrides):
    body = {"name": "Team Rules", "preferences": {"naming": {"variables": "snake_case"}}}
    body.update(overrides)
    return client.post("/profiles", json=body)


def test_list_profiles_builtins_first_then_by_name_expected(api_client):
    assert _create(api_client, name="Alpha").status_code == 201

    resp = api_client.get("/profiles")
    assert resp.status_code == 200

    names = [profile["name"] for profile in resp.json()]
    assert names[:6] == BUILTIN_NAMES_SORTED
    assert names[6:] == ["Alpha"]


def test_create_then_get_roundtrips_fields_expected(api_client):
    resp = _create(
        api_client,
        name="Empty Prefs",
        preferences={},
        description="Nothing configured",
        languages=["python"],
        custom_rules=["No wildcard imports"],
    )
    assert resp.status_code == 201
    payload = resp.json()
    assert payload["message"] == "Profile created successfully"

    profile = api_client.get(f"/profiles/{payload['id']}").json()
    assert profile["name"] == "Empty Prefs"
    assert profile["preferences"] == {}
    assert profile["languages"] == ["python"]
    assert profile["custom_rules"] == ["No wildcard imports"]
    assert profile["description"] == "Nothing configured"
    assert profile["is_builtin"] is False
    assert profile["created_at"]
    assert profile["updated_at"]


def test_create_defaults_optional_lists_expected(api_client):
    profile_id = _create(api_client).json()["id"]

    profile = api_client.get(f"/profiles/{profile_id}").json()

    assert profile["languages"] == []
    assert profile["custom_rules"] == []
    assert profile["author"] is None


def test_create_keeps_unknown_preference_categories_expected(api_client):
    profile_id = _create(api_client, preferences={"testing": {"framework": "pytest"}}).json()["id"]

    profile = api_client.get(f"/profiles/{profile_id}").json()

    assert profile["preferences"] == {"testing": {"framework": "pytest"}}


def test_create_requires_name_and_preferences_expected(api_client):
    missing_prefs = api_client.post("/profiles", json={"name": "No Prefs"})
    blank_name = api_client.post("/profiles", json={"name": "   ", "preferences": {}})

    assert missing_prefs.status_code == 400
    assert missing_prefs.json() == {"error": "Name and preferences are required"}
    assert blank_name.status_code == 400
    assert blank_name.json() == {"error": "Name and preferences are required"}


def test_create_duplicate_name_rejected_expected(api_client):
    assert _create(api_client).status_code == 201

    resp = _create(api_client)
    builtin_clash = _create(api_client, name="PEP 8")

    assert resp.status_code == 400
    assert resp.json() == {"error": "Profile name already exists"}
    assert builtin_clash.status_code == 400


def test_create_cannot_forge_builtin_flag_expected(api_client):
    profile_id = _create(api_client, is_builtin=True).json()["id"]

    assert api_client.get(f"/profiles/{profile_id}").json()["is_builtin"] is False


def test_get_missing_profile_not_found_expected(api_client):
    resp = api_client.get("/profiles/999999")

    assert resp.status_code == 404
    assert resp.json() == {"error": "Profile not found"}


def test_get_non_integer_id_is_bad_request_expected(api_client):
    resp = api_client.get("/profiles/not-a-number")

    assert resp.status_code == 400
    assert "error" in resp.json()


def test_partial_update_leaves_other_fields_untouched_expected(api_client):
    profile_id = _create(api_client, description="Before", languages=["go"]).json()["id"]
    before = api_client.get(f"/profiles/{profile_id}").json()

    resp = api_client.put(f"/profiles/{profile_id}", json={"description": "After"})
    assert resp.status_code == 200
    assert resp.json() == {"message": "Profile updated successfully"}

    after = api_client.get(f"/profiles/{profile_id}").json()
    assert after["description"] == "After"
    for field in ("name", "author", "languages", "preferences", "custom_rules", "reference_guide_path"):
        assert after[field] == before[field]


def test_update_replaces_preferences_wholesale_expected(api_client):
    profile_id = _create(api_client).json()["id"]

    api_client.put(f"/profiles/{profile_id}", json={"preferences": {"typing": {"coverage": "full"}}})

    assert api_client.get(f"/profiles/{profile_id}").json()["preferences"] == {"typing": {"coverage": "full"}}


def test_update_without_fields_rejected_expected(api_client):
    profile_id = _create(api_client).json()["id"]

    resp = api_client.put(f"/profiles/{profile_id}", json={})

    assert resp.status_code == 400
    assert resp.json() == {"error": "No fields to update"}


def test_update_empty_name_rejected_expected(api_client):
    profile_id = _create(api_client).json()["id"]

    resp = api_client.put(f"/profiles/{profile_id}", json={"name": ""})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Name cannot be empty"}


def test_update_null_preferences_rejected_expected(api_client):
    profile_id = _create(api_client).json()["id"]

    resp = api_client.put(f"/profiles/{profile_id}", json={"preferences": None})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Preferences cannot be null"}


def test_update_to_taken_name_rejected_expected(api_client):
    profile_id = _create(api_client, name="First").json()["id"]
    _create(api_client, name="Second")

    resp = api_client.put(f"/profiles/{profile_id}", json={"name": "Second"})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Profile name already exists"}
    assert api_client.get(f"/profiles/{profile_id}").json()["name"] == "First"


def test_update_builtin_forbidden_expected(api_client):
    profile_id = _builtin_id(api_client, "Minimal")

    resp = api_client.put(f"/profiles/{profile_id}", json={"description": "mine now"})

    assert resp.status_code == 403
    assert resp.json() == {"error": "Cannot modify built-in profiles"}


def test_update_missing_profile_not_found_expected(api_client):
    resp = api_client.put("/profiles/999999", json={"description": "x"})

    assert resp.status_code == 404


def test_delete_builtin_forbidden_expected(api_client):
    profile_id = _builtin_id(api_client, "PEP 8")

    resp = api_client.delete(f"/profiles/{profile_id}")

    assert resp.status_code == 403
    assert resp.json() == {"error": "Cannot delete built-in profiles"}
    assert api_client.get(f"/profiles/{profile_id}").status_code == 200


def test_delete_user_profile_expected(api_client):
    profile_id = _create(api_client).json()["id"]

    resp = api_client.delete(f"/profiles/{profile_id}")

    assert resp.status_code == 200
    assert resp.json() == {"message": "Profile deleted successfully"}
    assert api_client.get(f"/profiles/{profile_id}").status_code == 404
    assert api_client.delete(f"/profiles/{profile_id}").status_code == 404


def test_unexpected_error_returns_generic_500_expected(monkeypatch, make_api_client):
    def _boom(_session):
        raise RuntimeError("database exploded: secret detail")

    monkeypatch.setattr(profiles_router, "list_profiles", _boom)
    client = make_api_client(raise_server_exceptions=False)

    resp = client.get("/profiles")

    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error"}
