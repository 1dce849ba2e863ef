"""
api_client/client.py

Thin requests-based client for the remote real-estate CRM API.
The API is the system of record; this project never stores CRM data.
"""

import logging
import threading
from urllib.parse import urljoin

import requests
from django.conf import settings

from .exceptions import (
    ApiAuthenticationError,
    ApiAuthorizationError,
    ApiError,
    ApiNetworkError,
    ApiNotFoundError,
    ApiValidationError,
)

logger = logging.getLogger(__name__)


# ============================================================
# ENDPOINTS
# ============================================================
VIEWINGS_PATH = "/viewings/"
PROPERTIES_PATH = "/properties/listings/"
COMMISSION_STATS_PATH = "/properties/listings/commission_stats/"
CLIENTS_PATH = "/clients/"
USERS_PATH = "/users/users/"
PARISHES_PATH = "/settings/parishes/"
BUDGET_TIERS_PATH = "/settings/budget-tiers/"
SYSTEM_SETTINGS_PATH = "/settings/system/"

TOKEN_PATH = "/token/"
TOKEN_REFRESH_PATH = "/token/refresh/"
TOKEN_BLACKLIST_PATH = "/token/blacklist/"
CURRENT_USER_PATH = "/auth/user/"

# Safety net against a paginator whose "next" never ends
MAX_PAGES = 1000


class CrmApiClient:
    """
    One client per logged-in CRM session.

    Holds the bearer tokens for that session and maps every non-2xx
    answer onto the typed ApiError hierarchy.
    """

    def __init__(
        self,
        base_url=None,
        *,
        access_token=None,
        refresh_token=None,
        timeout=None,
        session=None,
    ):
        self.base_url = (base_url or settings.CRM_API_BASE_URL).rstrip("/") + "/"
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.timeout = timeout if timeout is not None else settings.CRM_API_TIMEOUT
        self.session = session or requests.Session()
        self._token_lock = threading.Lock()

    # =====================================================
    # LOW-LEVEL REQUESTS
    # =====================================================
    def url_for(self, path):
        if path.startswith(("http://", "https://")):
            return path
        return urljoin(self.base_url, path.lstrip("/"))

    def request(self, method, path, *, params=None, data=None):
        """
        One API call. An expired access token is refreshed once and the
        call retried; ApiAuthenticationError means the login is over.
        """
        token = self.access_token
        try:
            return self._send(method, path, params=params, data=data)
        except ApiAuthenticationError:
            if not self.refresh_access_token(stale_token=token):
                raise

        return self._send(method, path, params=params, data=data)

    def _send(self, method, path, *, params=None, data=None, authenticated=True):
        url = self.url_for(path)

        headers = {"Accept": "application/json"}
        if authenticated and self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=data,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ApiNetworkError(f"{method} {url} failed: {exc}") from exc

        return self._handle_response(method, url, response)

    def _handle_response(self, method, url, response):
        status = response.status_code

        if status == 204 or not response.content:
            payload = None
        else:
            try:
                payload = response.json()
            except ValueError as exc:
                if 200 <= status < 300:
                    raise ApiNetworkError(
                        f"{method} {url} returned a non-JSON body",
                        status_code=status,
                    ) from exc
                payload = None

        if 200 <= status < 300:
            return payload

        message = f"{method} {url} returned HTTP {status}"

        if status == 401:
            raise ApiAuthenticationError(message, status_code=status, payload=payload)
        if status == 403:
            raise ApiAuthorizationError(message, status_code=status, payload=payload)
        if status == 404:
            raise ApiNotFoundError(message, status_code=status, payload=payload)
        if status == 400:
            raise ApiValidationError(message, status_code=status, payload=payload)
        if status >= 500:
            raise ApiNetworkError(message, status_code=status, payload=payload)

        raise ApiError(message, status_code=status, payload=payload)

    def get(self, path, params=None):
        return self.request("GET", path, params=params)

    def post(self, path, data=None):
        return self.request("POST", path, data=data)

    def put(self, path, data=None):
        return self.request("PUT", path, data=data)

    def delete(self, path):
        return self.request("DELETE", path)

    # =====================================================
    # COLLECTIONS (ALWAYS COMPLETE)
    # =====================================================
    def fetch_collection(self, path, params=None):
        """
        Return every record of a collection endpoint.

        Accepts both a bare JSON list and the paginated shape
        {"results": [...], "next": "<url>"}; all pages are consumed.
        """
        records = []
        next_path = path
        next_params = params

        for _ in range(MAX_PAGES):
            payload = self.get(next_path, params=next_params)

            if payload is None:
                return records

            if isinstance(payload, list):
                records.extend(payload)
                return records

            if not isinstance(payload, dict) or "results" not in payload:
                raise ApiNetworkError(
                    f"GET {self.url_for(next_path)} did not return a collection"
                )

            records.extend(payload["results"] or [])

            next_path = payload.get("next")
            next_params = None  # "next" already carries the query string
            if not next_path:
                return records

        raise ApiNetworkError(f"GET {self.url_for(path)} exceeded {MAX_PAGES} pages")

    def list_viewings(self):
        return self.fetch_collection(VIEWINGS_PATH)

    def list_properties(self):
        return self.fetch_collection(PROPERTIES_PATH)

    def list_clients(self):
        return self.fetch_collection(CLIENTS_PATH)

    def list_users(self):
        return self.fetch_collection(USERS_PATH)

    def list_parishes(self):
        return self.fetch_collection(PARISHES_PATH)

    def list_budget_tiers(self):
        return self.fetch_collection(BUDGET_TIERS_PATH)

    def commission_stats(self):
        return self.get(COMMISSION_STATS_PATH)

    def system_settings(self):
        return self.get(SYSTEM_SETTINGS_PATH)

    # =====================================================
    # AUTH
    # =====================================================
    def obtain_token(self, username, password):
        payload = self.post(TOKEN_PATH, {"username": username, "password": password})
        if not isinstance(payload, dict) or "access" not in payload:
            raise ApiError("Token endpoint did not return an access token")

        self.access_token = payload["access"]
        self.refresh_token = payload.get("refresh")
        return payload

    def refresh_access_token(self, stale_token=None):
        """
        Swap the refresh token for a new access token.

        Concurrent callers that all saw `stale_token` rejected share a
        single refresh. Returns False when there is nothing to refresh
        with or the API refuses.
        """
        with self._token_lock:
            if stale_token is not None and self.access_token != stale_token:
                return True

            if not self.refresh_token:
                return False

            try:
                payload = self._send(
                    "POST",
                    TOKEN_REFRESH_PATH,
                    data={"refresh": self.refresh_token},
                    authenticated=False,
                )
            except ApiError as exc:
                logger.info("Access token refresh refused: %s", exc)
                return False

            if not isinstance(payload, dict) or "access" not in payload:
                return False

            self.access_token = payload["access"]
            # Rotating refresh tokens come back alongside the access token
            self.refresh_token = payload.get("refresh", self.refresh_token)
            return True

    def current_user(self):
        return self.get(CURRENT_USER_PATH)

    def blacklist_token(self):
        """Best-effort server-side logout. Never raises."""
        if not self.refresh_token:
            return False

        try:
            self.post(TOKEN_BLACKLIST_PATH, {"refresh": self.refresh_token})
        except ApiError as exc:
            logger.warning("Failed to blacklist refresh token: %s", exc)
            return False

        return True
