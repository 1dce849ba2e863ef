from django.test import Client

from api_client import ApiAuthenticationError, ApiNetworkError


def test_login_returns_user_and_permissions(login_as, registry):
    client = login_as("MANAGER")

    response = client.get("/auth/me/")

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["role"] == "MANAGER"
    assert user["permissions"] == {
        "view_commission_stats": True,
        "manage_users": True,
        "assignable_roles": ["AGENT", "MANAGER"],
    }
    assert len(registry) == 1


def test_agent_permissions_are_reported(login_as):
    user = login_as("AGENT").get("/auth/me/").json()["user"]

    assert user["permissions"] == {
        "view_commission_stats": False,
        "manage_users": False,
        "assignable_roles": [],
    }


def test_login_with_bad_password(registry):
    response = Client().post("/auth/login/", {"username": "ann", "password": "wrong"})

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid username or password"
    assert len(registry) == 0


def test_login_requires_both_fields(registry):
    response = Client().post("/auth/login/", {"username": "ann"})

    assert response.status_code == 400
    assert set(response.json()["errors"]) == {"password"}


def test_login_when_api_is_down(registry, fake_api):
    fake_api.fail["obtain_token"] = ApiNetworkError("down")

    response = Client().post(
        "/auth/login/", {"username": "ann", "password": fake_api.valid_password}
    )

    assert response.status_code == 502


def test_logout_closes_the_session(login_as, registry, fake_api):
    client = login_as("AGENT")

    response = client.post("/auth/logout/")

    assert response.status_code == 200
    assert len(registry) == 0
    assert fake_api.blacklisted is True
    assert client.get("/auth/me/").status_code == 401


def test_anonymous_requests_are_rejected(registry):
    client = Client()

    response = client.get("/notifications/")
    assert response.status_code == 401
    assert response.json()["code"] == "not_authenticated"

    root = client.get("/")
    assert root.status_code == 302
    assert root["Location"] == "/auth/login/"


def test_login_works_with_csrf_enforced(registry, fake_api):
    client = Client(enforce_csrf_checks=True)

    client.get("/auth/login/")
    token = client.cookies["csrftoken"].value

    rejected = client.post(
        "/auth/login/", {"username": "ann", "password": fake_api.valid_password}
    )
    accepted = client.post(
        "/auth/login/",
        {"username": "ann", "password": fake_api.valid_password},
        HTTP_X_CSRFTOKEN=token,
    )

    assert rejected.status_code == 403
    assert accepted.status_code == 200
    assert len(registry) == 1


def test_me_sets_csrf_cookie(login_as):
    client = login_as("AGENT")

    response = client.get("/auth/me/")

    assert "csrftoken" in response.cookies


def test_requests_extend_the_session(login_as, registry):
    client = login_as("AGENT")
    [crm_session] = registry._sessions.values()
    crm_session.expires_at -= registry.lifetime / 2
    before = crm_session.expires_at

    client.get("/auth/me/")

    assert crm_session.expires_at > before


def test_expired_session_is_closed_on_next_request(login_as, registry, fake_api):
    client = login_as("AGENT")
    [crm_session] = registry._sessions.values()
    crm_session.expires_at -= registry.lifetime + registry.lifetime

    response = client.get("/notifications/")

    assert response.status_code == 401
    assert response.json()["code"] == "not_authenticated"
    assert len(registry) == 0
    assert crm_session.aggregator.closed is True
    assert fake_api.blacklisted is True


def test_api_refusing_the_login_ends_the_session(login_as, registry, fake_api):
    client = login_as("MANAGER")
    fake_api.fail["list_users"] = ApiAuthenticationError("expired", status_code=401)

    response = client.get("/settings/users/")

    assert response.status_code == 401
    assert response.json()["code"] == "not_authenticated"
    assert len(registry) == 0
    assert client.get("/auth/me/").status_code == 401
