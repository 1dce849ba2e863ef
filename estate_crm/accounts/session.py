"""
accounts/session.py

Explicit per-login context.

A CrmSession is created when a user logs in against the remote API and
torn down when they log out. It carries everything a request needs:
the user payload, the role, an authenticated API client and the
notification feed. The SessionRegistry owns the live sessions and the
notification scheduler; middleware attaches the right session to each
request as `request.crm_session`.

A session nobody has used for SESSION_COOKIE_AGE seconds is over even
without a logout (the browser cookie is gone). Such sessions are closed
when next looked up and by a periodic sweep.
"""

import logging
import threading
import uuid
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

from api_client import CrmApiClient
from notifications.aggregator import NotificationAggregator
from notifications.scheduler import NotificationScheduler

from .permissions import parse_role

logger = logging.getLogger(__name__)

SESSION_KEY = "crm_session_id"


class CrmSession:
    def __init__(self, *, session_id, user, client, aggregator, lifetime):
        self.session_id = session_id
        self.user = user
        self.client = client
        self.aggregator = aggregator
        self.lifetime = lifetime
        self.expires_at = None
        self.touch()

    def touch(self, now=None):
        """Push the expiry back; called on every request of this session."""
        self.expires_at = (now or timezone.now()) + self.lifetime

    def is_expired(self, now=None):
        return (now or timezone.now()) >= self.expires_at

    @property
    def role(self):
        return parse_role(self.user.get("role"))

    @property
    def username(self):
        return self.user.get("username", "")

    @property
    def display_name(self):
        full = " ".join(
            part for part in (self.user.get("first_name"), self.user.get("last_name")) if part
        )
        return full or self.username

    def __str__(self):
        return f"{self.display_name} ({self.role or 'no role'})"


class SessionRegistry:
    """
    Live CrmSession objects keyed by session id.

    Constructed once by the accounts app config; never reached through
    module globals.
    """

    def __init__(self, *, scheduler=None, client_factory=None, lifetime=None):
        self.scheduler = scheduler or NotificationScheduler()
        self.client_factory = client_factory or CrmApiClient
        self.lifetime = lifetime or timedelta(seconds=settings.SESSION_COOKIE_AGE)
        self._sessions = {}
        self._lock = threading.Lock()

    # =====================================================
    # LOGIN / LOGOUT
    # =====================================================
    def login(self, username, password):
        """
        Authenticate against the API and open a session.

        Raises ApiError (ApiAuthenticationError for bad credentials);
        no session exists unless both token and user lookups succeed.
        """
        client = self.client_factory()
        client.obtain_token(username, password)
        user = client.current_user() or {}

        session_id = uuid.uuid4().hex
        aggregator = NotificationAggregator(
            client,
            label=f"[{username}]",
            # API refused the refresh token: the login is over
            on_login_expired=lambda: self.logout(session_id),
        )

        crm_session = CrmSession(
            session_id=session_id,
            user=user,
            client=client,
            aggregator=aggregator,
            lifetime=self.lifetime,
        )

        with self._lock:
            self._sessions[session_id] = crm_session

        if self.scheduler.enabled:
            self.scheduler.start_sweeping(self.evict_expired)
            self.scheduler.start_polling(session_id, aggregator)
        else:
            # No background polling: populate the feed once on activation
            aggregator.refresh()

        logger.info("CRM session opened for %s", crm_session)
        return crm_session

    def logout(self, session_id):
        with self._lock:
            crm_session = self._sessions.pop(session_id, None)

        if crm_session is None:
            return False

        # Stop the timer first so no new tick starts against a closed feed
        self.scheduler.stop_polling(session_id)
        crm_session.aggregator.close()
        crm_session.client.blacklist_token()

        logger.info("CRM session closed for %s", crm_session)
        return True

    def get(self, session_id):
        if not session_id:
            return None
        with self._lock:
            return self._sessions.get(session_id)

    def __len__(self):
        with self._lock:
            return len(self._sessions)

    def evict_expired(self, now=None):
        """Log out every session past its expiry. Returns how many."""
        now = now or timezone.now()
        with self._lock:
            expired = [
                session_id
                for session_id, crm_session in self._sessions.items()
                if crm_session.is_expired(now)
            ]

        evicted = sum(1 for session_id in expired if self.logout(session_id))
        if evicted:
            logger.info("Evicted %d expired CRM sessions", evicted)
        return evicted

    # =====================================================
    # DJANGO SESSION GLUE
    # =====================================================
    def for_request(self, request):
        crm_session = self.get(request.session.get(SESSION_KEY))
        if crm_session is None:
            return None

        now = timezone.now()
        if crm_session.is_expired(now):
            self.logout(crm_session.session_id)
            return None

        crm_session.touch(now)
        return crm_session

    def bind(self, request, crm_session):
        request.session[SESSION_KEY] = crm_session.session_id

    def unbind(self, request):
        session_id = request.session.pop(SESSION_KEY, None)
        if session_id:
            self.logout(session_id)
        request.session.flush()
