from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.apps import apps
from django.test import Client

from accounts.session import SessionRegistry
from api_client import ApiAuthenticationError, ApiNetworkError
from notifications.scheduler import NotificationScheduler

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=dt_timezone.utc)


def iso(moment):
    return moment.isoformat()


class FakeCrmApi:
    """
    In-memory stand-in for CrmApiClient.

    Collections are plain lists; `fail` maps a method name to the
    exception it should raise.
    """

    def __init__(self, *, role="AGENT", username="agent"):
        self.user = {
            "id": 1,
            "username": username,
            "first_name": "Test",
            "last_name": "User",
            "email": f"{username}@example.com",
            "role": role,
        }
        self.viewings = []
        self.properties = []
        self.clients = []
        self.users = []
        self.parishes = [{"id": 1, "name": "Kingston"}]
        self.budget_tiers = [{"id": 1, "display_name": "Under 10M", "order": 0}]
        self.settings = {
            "company_commission_percentage": "5.00",
            "agent_commission_split": "55.00",
            "overdue_contact_days": 3,
            "default_lead_recipient_email": "",
        }
        self.stats = {"total_sales_count": 2, "total_sales_value": 500000}

        self.fail = {}
        self.calls = []
        self.blacklisted = False
        self.valid_password = "secret-pass"

    def _maybe_fail(self, name):
        self.calls.append(name)
        if name in self.fail:
            raise self.fail[name]

    # Collections
    def list_viewings(self):
        self._maybe_fail("list_viewings")
        return list(self.viewings)

    def list_properties(self):
        self._maybe_fail("list_properties")
        return list(self.properties)

    def list_clients(self):
        self._maybe_fail("list_clients")
        return list(self.clients)

    def list_users(self):
        self._maybe_fail("list_users")
        return list(self.users)

    def list_parishes(self):
        self._maybe_fail("list_parishes")
        return list(self.parishes)

    def list_budget_tiers(self):
        self._maybe_fail("list_budget_tiers")
        return list(self.budget_tiers)

    def commission_stats(self):
        self._maybe_fail("commission_stats")
        return dict(self.stats)

    def system_settings(self):
        self._maybe_fail("system_settings")
        return dict(self.settings)

    # Generic calls
    def get(self, path, params=None):
        self._maybe_fail("get")
        self.calls.append(("GET", path))
        for user in self.users:
            if path.endswith(f"/{user['id']}/"):
                return dict(user)
        return {}

    def post(self, path, data=None):
        self._maybe_fail("post")
        self.calls.append(("POST", path, data))
        return {"id": 99, **(data or {})}

    def put(self, path, data=None):
        self._maybe_fail("put")
        self.calls.append(("PUT", path, data))
        return dict(data or {})

    def delete(self, path):
        self._maybe_fail("delete")
        self.calls.append(("DELETE", path))

    # Auth
    def obtain_token(self, username, password):
        self._maybe_fail("obtain_token")
        if password != self.valid_password:
            raise ApiAuthenticationError("bad credentials", status_code=401)
        return {"access": "a", "refresh": "r"}

    def current_user(self):
        self._maybe_fail("current_user")
        return dict(self.user)

    def blacklist_token(self):
        self.blacklisted = True
        return True

    def mutations(self):
        return [c for c in self.calls if isinstance(c, tuple) and c[0] != "GET"]


@pytest.fixture(autouse=True)
def _no_background_scheduler(settings):
    settings.ENABLE_SCHEDULER = False


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def fake_api():
    return FakeCrmApi()


@pytest.fixture
def network_error():
    return ApiNetworkError("connection refused")


@pytest.fixture
def registry(fake_api, monkeypatch):
    registry = SessionRegistry(
        scheduler=NotificationScheduler(enabled=False),
        client_factory=lambda: fake_api,
    )
    monkeypatch.setattr(apps.get_app_config("accounts"), "sessions", registry)
    return registry


@pytest.fixture
def login_as(registry, fake_api):
    """Return a logged-in django test Client for the given role."""

    def _login(role="AGENT"):
        fake_api.user["role"] = role
        fake_api.user["username"] = role.lower()
        client = Client()
        response = client.post(
            "/auth/login/",
            {"username": role.lower(), "password": fake_api.valid_password},
        )
        assert response.status_code == 200, response.content
        return client

    return _login


@pytest.fixture
def sample_sources(fake_api, now):
    """One property created 1h ago, a viewing in 90 min, a client 10 days stale."""
    fake_api.properties = [
        {
            "id": 7,
            "street_address": "12 Hope Road",
            "town": "Kingston",
            "status": "LISTED",
            "listing_price": 45000000,
            "created_at": iso(now - timedelta(hours=1)),
            "updated_at": iso(now - timedelta(hours=1)),
        }
    ]
    fake_api.viewings = [
        {
            "id": 3,
            "status": "SCHEDULED",
            "property_address": "12 Hope Road",
            "client_name": "Ann Brown",
            "viewing_datetime": iso(now + timedelta(minutes=90)),
            "created_at": iso(now - timedelta(days=1)),
        }
    ]
    fake_api.clients = [
        {
            "id": 5,
            "client_name": "Ann Brown",
            "last_contacted": iso(now - timedelta(days=10)),
            "created_at": iso(now - timedelta(days=30)),
        }
    ]
    return fake_api
