"""
notifications/services/client.py

Follow-up reminders for clients nobody has contacted lately.
"""

import math

from notifications.models import Notification

from .common import days, record_timestamp, window

# Route of the dashboard front-end, not of this project
ACTION_URL = "/dashboard/clients/"


def derive_client_followup_notifications(clients, now):
    """
    One notification per client whose last contact is at least 3 days old
    (inclusive, measured in fractional days). HIGH from 7 days on.

    Clients without last_contacted never produce a notification.
    """
    stale_after = days(window("CLIENT_STALE_DAYS"))
    urgent_after = days(window("CLIENT_URGENT_DAYS"))

    notifications = []

    for client in clients:
        if not client.get("last_contacted"):
            continue

        last_contacted = record_timestamp(client, "last_contacted")
        if last_contacted is None:
            continue

        elapsed = now - last_contacted
        if elapsed < stale_after:
            continue

        elapsed_days = math.floor(elapsed.total_seconds() / 86400)
        name = client.get("client_name") or f"Client #{client.get('id')}"

        notifications.append(
            Notification(
                id=f"client-stale-{client['id']}",
                kind=Notification.Kind.CLIENT_FOLLOWUP,
                title="Follow-up Needed",
                message=f"{name} hasn't been contacted in {elapsed_days} days",
                timestamp=last_contacted,
                priority=(
                    Notification.Priority.HIGH
                    if elapsed >= urgent_after
                    else Notification.Priority.MEDIUM
                ),
                action_url=ACTION_URL,
            )
        )

    return notifications
