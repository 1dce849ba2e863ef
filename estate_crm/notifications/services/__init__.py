"""
Notification derivation layer.

Each module turns one source collection into notifications WITHOUT
applying role-based visibility or read state. Read state lives in the
aggregator; visibility is decided in accounts.permissions.
"""

import logging

from .viewing import derive_viewing_notifications
from .listing import (
    derive_new_property_notifications,
    derive_sale_notifications,
)
from .client import derive_client_followup_notifications
from .ranking import rank_notifications

logger = logging.getLogger("notifications")


def _apply_rule(rule, records, now):
    """
    Run one rule record by record so a malformed record (no id, not an
    object) is skipped instead of sinking the whole feed.
    """
    derived = []
    for record in records:
        try:
            derived.extend(rule([record], now))
        except (AttributeError, KeyError, TypeError, ValueError):
            logger.debug(
                "Skipping malformed record for %s: %r",
                rule.__name__,
                record,
                exc_info=True,
            )
    return derived


def derive_notifications(*, viewings, properties, clients, now):
    """Apply every rule and return the ranked list (all unread)."""
    derived = [
        *_apply_rule(derive_viewing_notifications, viewings, now),
        *_apply_rule(derive_new_property_notifications, properties, now),
        *_apply_rule(derive_sale_notifications, properties, now),
        *_apply_rule(derive_client_followup_notifications, clients, now),
    ]

    # A record repeated by the API (e.g. across pages) yields one notification
    unique = {}
    for notification in derived:
        unique.setdefault(notification.id, notification)

    return rank_notifications(unique.values())


__all__ = [
    "derive_notifications",
    "derive_viewing_notifications",
    "derive_new_property_notifications",
    "derive_sale_notifications",
    "derive_client_followup_notifications",
    "rank_notifications",
]
