"""
Helpers shared by the notification derivation rules.
"""

import logging
from datetime import datetime, timedelta, timezone as dt_timezone

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_datetime

logger = logging.getLogger("notifications")

DEFAULT_WINDOWS = {
    "VIEWING_LOOKAHEAD_HOURS": 24,
    "VIEWING_URGENT_HOURS": 2,
    "NEW_PROPERTY_HOURS": 24,
    "SALE_HOURS": 48,
    "CLIENT_STALE_DAYS": 3,
    "CLIENT_URGENT_DAYS": 7,
}


def window(name):
    configured = getattr(settings, "NOTIFICATION_WINDOWS", None) or {}
    return configured.get(name, DEFAULT_WINDOWS[name])


def hours(value):
    return timedelta(hours=value)


def days(value):
    return timedelta(days=value)


def parse_timestamp(value):
    """
    Parse an API timestamp into an aware datetime.

    Naive values are taken as UTC. Returns None for missing or
    malformed input.
    """
    if value in (None, ""):
        return None

    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = parse_datetime(str(value))
        except ValueError:
            parsed = None

    if parsed is None:
        return None

    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)

    return parsed


def record_timestamp(record, *fields):
    """
    First parseable timestamp among `fields` of an API record.
    Logs at DEBUG when none parses.
    """
    for field in fields:
        parsed = parse_timestamp(record.get(field))
        if parsed is not None:
            return parsed

    logger.debug(
        "Skipping record %s: no usable timestamp in %s",
        record.get("id"),
        ", ".join(fields),
    )
    return None


def normalized_status(record):
    return str(record.get("status") or "").strip().upper()


def format_price(value):
    if value in (None, ""):
        return "an undisclosed price"
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return str(value)

    if amount.is_integer():
        return f"${amount:,.0f}"
    return f"${amount:,.2f}"
