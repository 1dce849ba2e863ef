import json
from unittest import mock

import pytest
import requests

from api_client import (
    ApiAuthenticationError,
    ApiAuthorizationError,
    ApiError,
    ApiNetworkError,
    ApiNotFoundError,
    ApiValidationError,
    CrmApiClient,
)


def make_response(status=200, payload=None, raw=None):
    response = requests.Response()
    response.status_code = status
    if raw is not None:
        response._content = raw
    elif payload is not None:
        response._content = json.dumps(payload).encode()
    else:
        response._content = b""
    return response


@pytest.fixture
def http():
    return mock.Mock(spec=requests.Session)


@pytest.fixture
def client(http):
    return CrmApiClient(
        "https://crm.example.com/api",
        access_token="tok",
        timeout=3,
        session=http,
    )


def test_get_sends_bearer_token_to_joined_url(client, http):
    http.request.return_value = make_response(payload={"ok": True})

    assert client.get("/clients/") == {"ok": True}

    method, url = http.request.call_args.args
    kwargs = http.request.call_args.kwargs
    assert (method, url) == ("GET", "https://crm.example.com/api/clients/")
    assert kwargs["headers"]["Authorization"] == "Bearer tok"
    assert kwargs["timeout"] == 3


def test_base_url_defaults_to_settings(settings, http):
    settings.CRM_API_BASE_URL = "https://other.example.com/v1/"
    settings.CRM_API_TIMEOUT = 7

    client = CrmApiClient(session=http)

    assert client.url_for("/viewings/") == "https://other.example.com/v1/viewings/"
    assert client.timeout == 7


@pytest.mark.parametrize(
    "status, error",
    [
        (401, ApiAuthenticationError),
        (403, ApiAuthorizationError),
        (404, ApiNotFoundError),
        (400, ApiValidationError),
        (500, ApiNetworkError),
        (503, ApiNetworkError),
        (409, ApiError),
    ],
)
def test_status_codes_map_to_typed_errors(client, http, status, error):
    http.request.return_value = make_response(status, {"detail": "nope"})

    with pytest.raises(error) as excinfo:
        client.get("/clients/")

    assert excinfo.value.status_code == status
    assert excinfo.value.payload == {"detail": "nope"}


def test_validation_error_exposes_field_errors(client, http):
    http.request.return_value = make_response(
        400, {"role": ["Managers cannot create admins."], "email": "Invalid"}
    )

    with pytest.raises(ApiValidationError) as excinfo:
        client.post("/users/users/", {"role": "ADMIN"})

    assert excinfo.value.field_errors == {
        "role": ["Managers cannot create admins."],
        "email": ["Invalid"],
    }


def test_connection_failures_are_network_errors(client, http):
    http.request.side_effect = requests.ConnectionError("refused")

    with pytest.raises(ApiNetworkError):
        client.get("/clients/")


def test_non_json_success_body_is_network_error(client, http):
    http.request.return_value = make_response(200, raw=b"<html>")

    with pytest.raises(ApiNetworkError):
        client.get("/clients/")


def test_fetch_collection_follows_every_page(client, http):
    http.request.side_effect = [
        make_response(payload={"results": [{"id": 1}, {"id": 2}],
                               "next": "https://crm.example.com/api/clients/?page=2"}),
        make_response(payload={"results": [{"id": 3}], "next": None}),
    ]

    assert client.list_clients() == [{"id": 1}, {"id": 2}, {"id": 3}]

    urls = [call.args[1] for call in http.request.call_args_list]
    assert urls == [
        "https://crm.example.com/api/clients/",
        "https://crm.example.com/api/clients/?page=2",
    ]


def test_fetch_collection_accepts_bare_lists(client, http):
    http.request.return_value = make_response(payload=[{"id": 1}])

    assert client.list_viewings() == [{"id": 1}]


def test_fetch_collection_fails_when_a_later_page_fails(client, http):
    http.request.side_effect = [
        make_response(payload={"results": [{"id": 1}], "next": "/properties/listings/?page=2"}),
        make_response(502),
    ]

    with pytest.raises(ApiNetworkError):
        client.list_properties()


def test_fetch_collection_rejects_non_collection_bodies(client, http):
    http.request.return_value = make_response(payload={"detail": "odd"})

    with pytest.raises(ApiNetworkError):
        client.list_clients()


def test_obtain_token_stores_tokens(http):
    client = CrmApiClient("https://crm.example.com/api/", session=http)
    http.request.return_value = make_response(payload={"access": "A", "refresh": "R"})

    client.obtain_token("ann", "pw")

    assert (client.access_token, client.refresh_token) == ("A", "R")
    assert http.request.call_args.kwargs["json"] == {"username": "ann", "password": "pw"}


def test_blacklist_token_never_raises(client, http):
    client.refresh_token = "R"
    http.request.side_effect = requests.Timeout("slow")

    assert client.blacklist_token() is False


def test_blacklist_without_refresh_token_is_skipped(client, http):
    assert client.blacklist_token() is False
    http.request.assert_not_called()


def test_expired_access_token_is_refreshed_once_and_retried(client, http):
    client.refresh_token = "R"
    http.request.side_effect = [
        make_response(401, {"detail": "Token is expired"}),
        make_response(payload={"access": "NEW", "refresh": "R2"}),
        make_response(payload={"ok": True}),
    ]

    assert client.get("/clients/") == {"ok": True}

    refresh_call, retry_call = http.request.call_args_list[1:]
    assert refresh_call.args == ("POST", "https://crm.example.com/api/token/refresh/")
    assert refresh_call.kwargs["json"] == {"refresh": "R"}
    assert "Authorization" not in refresh_call.kwargs["headers"]
    assert retry_call.kwargs["headers"]["Authorization"] == "Bearer NEW"
    assert (client.access_token, client.refresh_token) == ("NEW", "R2")


def test_refused_refresh_ends_the_login(client, http):
    client.refresh_token = "R"
    http.request.side_effect = [
        make_response(401, {"detail": "Token is expired"}),
        make_response(401, {"detail": "Token is blacklisted"}),
    ]

    with pytest.raises(ApiAuthenticationError):
        client.get("/clients/")

    assert http.request.call_count == 2
    assert client.access_token == "tok"


def test_forbidden_is_not_retried(client, http):
    client.refresh_token = "R"
    http.request.return_value = make_response(403, {"detail": "nope"})

    with pytest.raises(ApiAuthorizationError):
        client.get("/properties/listings/commission_stats/")

    assert http.request.call_count == 1
