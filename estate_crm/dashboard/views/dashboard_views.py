"""
Dashboard landing screen: headline counts, recent activity, upcoming
viewings and (for managers and admins only) commission statistics.
"""

import logging

from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET

from accounts.permissions import Resource, authorize
from api_client import ApiAuthenticationError, ApiAuthorizationError, ApiError
from api_client.concurrent import fetch_all
from notifications.services.common import normalized_status, parse_timestamp

from ..errors import RETRY_LATER_MESSAGE, end_session, surface_api_errors

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 3
UPCOMING_VIEWINGS_LIMIT = 3


@require_GET
@surface_api_errors()
def dashboard_summary(request):
    client = request.crm_session.client

    properties, clients, viewings = fetch_all(
        client.list_properties,
        client.list_clients,
        client.list_viewings,
    )

    now = timezone.now()
    upcoming = upcoming_viewings(viewings, now)

    return JsonResponse(
        {
            "stats": {
                "total_properties": len(properties),
                "active_listings": sum(
                    1 for p in properties if normalized_status(p) == "LISTED"
                ),
                "total_clients": len(clients),
                "scheduled_viewings": len(upcoming),
            },
            "recent_activity": recent_activity(properties, clients, viewings),
            "upcoming_viewings": upcoming[:UPCOMING_VIEWINGS_LIMIT],
        }
    )


@require_GET
def commission_stats(request):
    """
    Commission figures, or an explicit "unavailable" block.

    The role check happens before any API call; agents never receive
    figures, zeroed or otherwise.
    """
    decision = authorize(request.crm_session.role, Resource.COMMISSION_STATS)
    if not decision.allowed:
        return JsonResponse(unavailable(decision.reason, code="access_denied"), status=403)

    try:
        stats = request.crm_session.client.commission_stats()
    except ApiAuthenticationError:
        return end_session(request)
    except ApiAuthorizationError:
        return JsonResponse(
            unavailable(
                "You are not authorized to view commission statistics. "
                "Please contact your administrator.",
                code="access_denied",
            ),
            status=403,
        )
    except ApiError as exc:
        logger.warning("Commission stats unavailable: %s", exc)
        return JsonResponse(unavailable(RETRY_LATER_MESSAGE, code="unavailable"), status=502)

    return JsonResponse({"available": True, "stats": stats})


# =====================================================
# HELPERS
# =====================================================
def unavailable(reason, *, code):
    return {"available": False, "code": code, "reason": reason, "stats": None}


def upcoming_viewings(viewings, now):
    upcoming = []
    for viewing in viewings:
        if normalized_status(viewing) != "SCHEDULED":
            continue

        scheduled_at = parse_timestamp(viewing.get("viewing_datetime"))
        if scheduled_at is None or scheduled_at <= now:
            continue

        upcoming.append((scheduled_at, viewing))

    upcoming.sort(key=lambda pair: pair[0])
    return [
        {
            "id": viewing.get("id"),
            "property_address": viewing.get("property_address"),
            "client_name": viewing.get("client_name"),
            "viewing_datetime": scheduled_at.isoformat(),
            "status": viewing.get("status"),
        }
        for scheduled_at, viewing in upcoming
    ]


def recent_activity(properties, clients, viewings):
    """
    Newest few properties, clients and viewings merged into one feed.
    Records without a parseable created_at are left out.
    """
    candidates = [
        *(("property", p, f"New property listed: {p.get('street_address')}") for p in properties[:3]),
        *(("client", c, f"New client added: {c.get('client_name')}") for c in clients[:2]),
        *(("viewing", v, f"Viewing scheduled: {v.get('property_address')}") for v in viewings[:2]),
    ]

    dated = []
    for kind, record, description in candidates:
        created_at = parse_timestamp(record.get("created_at"))
        if created_at is not None:
            dated.append((created_at, kind, record, description))

    dated.sort(key=lambda entry: entry[0], reverse=True)

    return [
        {
            "id": record.get("id"),
            "type": kind,
            "description": description,
            "created_at": created_at.isoformat(),
        }
        for created_at, kind, record, description in dated[:RECENT_ACTIVITY_LIMIT]
    ]
