"""
notifications/services/viewing.py

Upcoming viewing reminders.
"""

from notifications.models import Notification

from .common import hours, normalized_status, record_timestamp, window

SCHEDULED = "SCHEDULED"
# Route of the dashboard front-end, not of this project
ACTION_URL = "/dashboard/viewings/"


def derive_viewing_notifications(viewings, now):
    """
    One notification per SCHEDULED viewing starting in (now, now + 24h].

    HIGH when the viewing starts within 2 hours, MEDIUM otherwise.
    """
    lookahead = hours(window("VIEWING_LOOKAHEAD_HOURS"))
    urgent = hours(window("VIEWING_URGENT_HOURS"))

    notifications = []

    for viewing in viewings:
        if normalized_status(viewing) != SCHEDULED:
            continue

        scheduled_at = record_timestamp(viewing, "viewing_datetime")
        if scheduled_at is None:
            continue

        until = scheduled_at - now
        if until.total_seconds() <= 0 or until > lookahead:
            continue

        hours_until = round(until.total_seconds() / 3600)
        if hours_until < 1:
            when = "in under an hour"
        else:
            when = f"in {hours_until} " + ("hour" if hours_until == 1 else "hours")

        address = viewing.get("property_address") or "the property"
        client = viewing.get("client_name") or "a client"

        notifications.append(
            Notification(
                id=f"viewing-{viewing['id']}",
                kind=Notification.Kind.VIEWING,
                title="Upcoming Viewing",
                message=(
                    f"Viewing at {address} with {client} "
                    f"{when}"
                ),
                timestamp=scheduled_at,
                priority=(
                    Notification.Priority.HIGH
                    if until <= urgent
                    else Notification.Priority.MEDIUM
                ),
                action_url=ACTION_URL,
            )
        )

    return notifications
