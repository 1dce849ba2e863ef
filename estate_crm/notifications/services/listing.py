"""
notifications/services/listing.py

Property listing notifications: freshly listed and recently sold.
"""

from notifications.models import Notification

from .common import (
    format_price,
    hours,
    normalized_status,
    record_timestamp,
    window,
)

SOLD_STATUSES = {"SOLD", "CLOSED"}
# Route of the dashboard front-end, not of this project
ACTION_URL = "/dashboard/properties/"


def _address(listing):
    return listing.get("street_address") or f"Property #{listing.get('id')}"


def derive_new_property_notifications(properties, now):
    """MEDIUM notification for every listing created in the last 24 hours."""
    recent = hours(window("NEW_PROPERTY_HOURS"))

    notifications = []

    for listing in properties:
        created_at = record_timestamp(listing, "created_at")
        if created_at is None:
            continue

        if now - created_at > recent:
            continue

        town = listing.get("town")
        where = f"{_address(listing)} in {town}" if town else _address(listing)

        notifications.append(
            Notification(
                id=f"property-new-{listing['id']}",
                kind=Notification.Kind.PROPERTY_NEW,
                title="New Property Added",
                message=f"{where} has been listed",
                timestamp=created_at,
                priority=Notification.Priority.MEDIUM,
                action_url=ACTION_URL,
            )
        )

    return notifications


def derive_sale_notifications(properties, now):
    """
    HIGH notification for SOLD / CLOSED listings updated in the last 48 hours.

    The API has no dedicated "sold at" field, so updated_at stands in for
    the sale time (created_at when updated_at is missing).
    """
    recent = hours(window("SALE_HOURS"))

    notifications = []

    for listing in properties:
        if normalized_status(listing) not in SOLD_STATUSES:
            continue

        sold_at = record_timestamp(listing, "updated_at", "created_at")
        if sold_at is None:
            continue

        if now - sold_at > recent:
            continue

        price = format_price(listing.get("listing_price"))

        notifications.append(
            Notification(
                id=f"property-sold-{listing['id']}",
                kind=Notification.Kind.SALE,
                title="Property Sold!",
                message=f"{_address(listing)} has been sold for {price}",
                timestamp=sold_at,
                priority=Notification.Priority.HIGH,
                action_url=ACTION_URL,
            )
        )

    return notifications
