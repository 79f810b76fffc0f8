from conftest import PNG_BYTES, register


def test_get_profile(client):
    user = register(client)
    response = client.get("/api/profile", headers=user["headers"])
    assert response.status_code == 200
    profile = response.json()
    assert profile["id"] == user["id"]
    assert profile["email"] == user["email"]
    assert profile["is_admin"] is False


def test_update_own_profile(client):
    user = register(client)
    response = client.post(
        "/api/profiles",
        json={"id": user["id"], "full_name": "Ada Lovelace", "phone_number": "+44 20"},
        headers=user["headers"],
    )
    assert response.status_code == 201
    body = response.json()
    assert body["full_name"] == "Ada Lovelace"
    assert body["is_admin"] is False
    assert body["email"] == user["email"]


def test_profile_of_someone_else_is_forbidden(client):
    user = register(client)
    response = client.post("/api/profiles", json={"id": "someone-else"}, headers=user["headers"])
    assert response.status_code == 403


def test_upload_avatar(client):
    user = register(client)
    response = client.post(
        "/api/upload-avatar",
        files={"avatar": ("me.PNG", PNG_BYTES, "image/png")},
        headers=user["headers"],
    )
    assert response.status_code == 200, response.text
    assert response.json()["avatar_url"].endswith(f"/avatars/{user['id']}.png")

    bad = client.post(
        "/api/upload-avatar",
        files={"avatar": ("cv.pdf", b"%PDF", "application/pdf")},
        headers=user["headers"],
    )
    assert bad.status_code == 400


def test_report_generation_uses_the_full_name(client):
    user = register(client)
    admin = register(client, admin=True)
    client.post("/api/profiles", json={"id": user["id"], "full_name": "Ada Lovelace"}, headers=user["headers"])
    files = [(f"step{step}", (f"{step}.jpg", PNG_BYTES, "image/jpeg")) for step in range(1, 10)]
    request = client.post(
        "/api/authentication-submission", data={"model_name": "Kelly"}, files=files, headers=user["headers"]
    ).json()

    client.post(f"/api/admin/authentication-requests/{request['id']}/report", headers=admin["headers"])
    remote = client.app.state.context.remote
    content, content_type = remote.read_object("reports", f"{request['human_readable_id']}.pdf")
    assert content_type == "application/pdf"
    assert b"Customer Name: Ada Lovelace" in content


def test_push_settings_round_trip(client):
    user = register(client)
    current = client.get(f"/api/push-settings/{user['id']}", headers=user["headers"])
    assert current.status_code == 200
    assert current.json() == {"success": True, "push_enabled": False}

    updated = client.post(
        "/api/update-push", json={"user_id": user["id"], "push_enabled": True}, headers=user["headers"]
    )
    assert updated.status_code == 200
    assert updated.json()["push_enabled"] is True
    assert client.get(f"/api/push-settings/{user['id']}", headers=user["headers"]).json()["push_enabled"] is True
    assert client.get("/api/profile", headers=user["headers"]).json()["push_enabled"] is True


def test_push_settings_require_a_boolean(client):
    user = register(client)
    response = client.post(
        "/api/update-push", json={"user_id": user["id"], "push_enabled": "yes"}, headers=user["headers"]
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VRAI_VALIDATION_ERROR"


def test_push_settings_of_missing_profile(client):
    admin = register(client, admin=True)
    assert client.get("/api/push-settings/ghost", headers=admin["headers"]).status_code == 404
    response = client.post(
        "/api/update-push", json={"user_id": "ghost", "push_enabled": False}, headers=admin["headers"]
    )
    assert response.status_code == 404


def test_push_settings_of_another_user_are_forbidden(client):
    owner = register(client)
    other = register(client)
    assert client.get(f"/api/push-settings/{owner['id']}", headers=other["headers"]).status_code == 403
