"""
notifications/aggregator.py

Per-session notification feed.

The feed is rebuilt wholesale from three API collections on every
refresh. The only state carried from one refresh to the next is which
notification ids the user has already read.
"""

import logging
import threading

from django.utils import timezone

from api_client import ApiAuthenticationError, ApiError
from api_client.concurrent import fetch_all

from .services import derive_notifications

logger = logging.getLogger("notifications")


class NotificationAggregator:
    """
    Owns the notification list of one CRM session.

    `source` is anything exposing list_viewings(), list_properties() and
    list_clients() (normally a CrmApiClient). Nothing else mutates the
    list: all changes go through refresh / mark_as_read / mark_all_as_read.
    """

    def __init__(self, source, *, clock=None, label="", on_login_expired=None):
        self.source = source
        self.label = label
        self._clock = clock
        self._on_login_expired = on_login_expired

        self._notifications = ()
        self._state_lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._closed = False

        self.last_refreshed_at = None
        self.last_error = None

    # =====================================================
    # READ SIDE
    # =====================================================
    @property
    def notifications(self):
        """Snapshot of the current ranked list."""
        return self._notifications

    @property
    def unread_count(self):
        return sum(1 for n in self._notifications if not n.read)

    @property
    def closed(self):
        return self._closed

    def _now(self):
        return self._clock() if self._clock else timezone.now()

    def get(self, notification_id):
        return next(
            (n for n in self._notifications if n.id == notification_id),
            None,
        )

    # =====================================================
    # REFRESH
    # =====================================================
    def refresh(self):
        """
        Rebuild the list from fresh API data.

        Returns True when a new list was applied, False when the refresh
        was skipped (another one in flight, session closed) or failed (the
        previous list is kept as-is).
        """
        if not self._refresh_lock.acquire(blocking=False):
            logger.info("Notification refresh already running %s, skipping", self.label)
            return False

        try:
            if self._closed:
                return False

            try:
                viewings, properties, clients = self._fetch_sources()
            except ApiAuthenticationError as exc:
                self.last_error = exc
                logger.warning(
                    "Notification refresh %s: login no longer accepted, ending session",
                    self.label,
                )
                if self._on_login_expired is not None:
                    self._on_login_expired()
                return False
            except ApiError as exc:
                self.last_error = exc
                logger.warning(
                    "Notification refresh failed %s, keeping previous list: %s",
                    self.label,
                    exc,
                )
                return False

            try:
                derived = derive_notifications(
                    viewings=viewings,
                    properties=properties,
                    clients=clients,
                    now=self._now(),
                )
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                self.last_error = exc
                logger.exception(
                    "Could not derive notifications %s, keeping previous list",
                    self.label,
                )
                return False

            return self._apply(derived)

        finally:
            self._refresh_lock.release()

    def _fetch_sources(self):
        """
        Fetch the three collections concurrently and wait for ALL of them.

        Any failure aborts the whole refresh (no half-derived list).
        """
        return fetch_all(
            self.source.list_viewings,
            self.source.list_properties,
            self.source.list_clients,
        )

    def _apply(self, derived):
        with self._state_lock:
            # Logged out while the fetch was in flight
            if self._closed:
                logger.info("Discarding notification refresh for closed session %s", self.label)
                return False

            read_ids = {n.id for n in self._notifications if n.read}

            self._notifications = tuple(
                n.with_read(n.id in read_ids) for n in derived
            )
            self.last_refreshed_at = self._now()
            self.last_error = None

        logger.debug(
            "Notifications refreshed %s: %d total, %d unread",
            self.label,
            len(self._notifications),
            self.unread_count,
        )
        return True

    # =====================================================
    # READ STATE
    # =====================================================
    def mark_as_read(self, notification_id):
        """Mark one notification read. Unknown ids are ignored."""
        with self._state_lock:
            found = False
            updated = []
            for n in self._notifications:
                if n.id == notification_id:
                    found = True
                    n = n.as_read()
                updated.append(n)

            if found:
                self._notifications = tuple(updated)

        return found

    def mark_all_as_read(self):
        with self._state_lock:
            marked = sum(1 for n in self._notifications if not n.read)
            self._notifications = tuple(n.as_read() for n in self._notifications)

        return marked

    # =====================================================
    # LIFECYCLE
    # =====================================================
    def close(self):
        """Session ended: drop the list and ignore any in-flight refresh."""
        with self._state_lock:
            self._closed = True
            self._notifications = ()
