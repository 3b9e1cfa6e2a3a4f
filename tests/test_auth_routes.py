from conftest import PASSWORD, auth_headers, register

REGISTER = "/api/v1/auth/register"
LOGIN = "/api/v1/auth/login"
REFRESH = "/api/v1/auth/refresh"
ME = "/api/v1/auth/me"
LOGOUT = "/api/v1/auth/logout"


def test_register_parent(client):
    response = client.post(REGISTER, json={
        "email": "parent@family.com",
        "name": "Pat Parent",
        "password": PASSWORD,
        "userType": "parent",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    user = body["data"]["user"]
    assert user["email"] == "parent@family.com"
    assert user["userType"] == "parent"
    assert "passwordHash" not in user and "password_hash" not in user
    tokens = body["data"]["tokens"]
    assert tokens["expiresIn"] == 900
    assert tokens["refreshExpiresIn"] == 604800
    assert response.headers["X-RateLimit-Limit"] == "30"


def test_register_child_links_parent(client, parent):
    parent_user, _ = parent
    child_user, _ = register(client, "kid@family.com", "Kim Kid", "child", parent_user["id"])

    assert child_user["parentId"] == parent_user["id"]


def test_register_duplicate_email(client, parent):
    response = client.post(REGISTER, json={
        "email": "parent@family.com", "name": "Other", "password": PASSWORD, "userType": "parent",
    })

    assert response.status_code == 409
    assert response.json() == {"success": False, "error": "User with this email already exists"}


def test_register_with_unknown_parent(client):
    response = client.post(REGISTER, json={
        "email": "kid@family.com", "name": "Kim", "password": PASSWORD,
        "userType": "child", "parentId": "does-not-exist",
    })

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid parent ID"


def test_register_rejects_empty_parent_id(client):
    response = client.post(REGISTER, json={
        "email": "kid@family.com", "name": "Kim", "password": PASSWORD,
        "userType": "child", "parentId": "",
    })

    assert response.status_code == 400
    assert "parentId" in response.json()["error"]


def test_register_child_as_parent_of_child(client, child):
    child_user, _ = child
    response = client.post(REGISTER, json={
        "email": "kid2@family.com", "name": "Kit", "password": PASSWORD,
        "userType": "child", "parentId": child_user["id"],
    })

    assert response.status_code == 400


def test_register_parent_with_parent_id(client, parent):
    parent_user, _ = parent
    response = client.post(REGISTER, json={
        "email": "other@family.com", "name": "Other", "password": PASSWORD,
        "userType": "parent", "parentId": parent_user["id"],
    })

    assert response.status_code == 400


def test_register_validation(client):
    response = client.post(REGISTER, json={
        "email": "not-an-email", "name": "P", "password": "short", "userType": "admin",
    })

    assert response.status_code == 400
    error = response.json()["error"]
    assert error.startswith("Validation error: ")
    for field in ("email", "name", "password", "userType"):
        assert field in error


def test_login(client, parent):
    response = client.post(LOGIN, json={"email": "parent@family.com", "password": PASSWORD})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["user"]["name"] == "Pat Parent"
    assert data["tokens"]["accessToken"]


def test_login_wrong_password_and_unknown_email_look_the_same(client, parent):
    wrong = client.post(LOGIN, json={"email": "parent@family.com", "password": "password999"})
    unknown = client.post(LOGIN, json={"email": "nobody@family.com", "password": PASSWORD})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {"success": False, "error": "Invalid email or password"}


def test_refresh(client):
    _, tokens = register(client, "parent@family.com", "Pat Parent")

    response = client.post(REFRESH, json={"refreshToken": tokens["refreshToken"]})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["expiresIn"] == 900
    me = client.get(ME, headers=auth_headers(data["accessToken"]))
    assert me.status_code == 200


def test_refresh_missing_token(client):
    response = client.post(REFRESH, json={})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_refresh_rejects_access_token(client):
    _, tokens = register(client, "parent@family.com", "Pat Parent")

    response = client.post(REFRESH, json={"refreshToken": tokens["accessToken"]})

    assert response.status_code == 401


def test_me(client, parent):
    _, headers = parent
    response = client.get(ME, headers=headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["email"] == "parent@family.com"
    assert data["createdAt"].endswith("Z")


def test_me_requires_token(client):
    response = client.get(ME)

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Invalid authorization header"}


def test_me_with_garbage_token(client):
    response = client.get(ME, headers=auth_headers("garbage"))

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid token"


def test_logout_clears_cached_ai_output(client, parent, fake_llm):
    _, headers = parent
    client.post("/api/v1/parent/chat", json={"message": "How do I budget?"}, headers=headers)
    client.post("/api/v1/parent/chat", json={"message": "How do I budget?"}, headers=headers)
    calls_before = len(fake_llm.calls)

    response = client.post(LOGOUT, headers=headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Logged out successfully"}

    client.post("/api/v1/parent/chat", json={"message": "How do I budget?"}, headers=headers)
    assert len(fake_llm.calls) > calls_before


def test_anonymous_rate_limit_is_per_ip(client):
    headers = {"x-forwarded-for": "203.0.113.9, 10.0.0.1"}
    for _ in range(30):
        client.post(LOGIN, json={"email": "x@family.com", "password": PASSWORD}, headers=headers)

    blocked = client.post(LOGIN, json={"email": "x@family.com", "password": PASSWORD}, headers=headers)
    assert blocked.status_code == 429
    assert blocked.json()["error"].startswith("Rate limit exceeded. Try again in")
    assert int(blocked.headers["Retry-After"]) > 0

    other_ip = client.post(
        LOGIN,
        json={"email": "x@family.com", "password": PASSWORD},
        headers={"cf-connecting-ip": "198.51.100.7"},
    )
    assert other_ip.status_code == 401
