from django.core.paginator import Paginator
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from dashboard.errors import end_session
from notifications.models import Notification


def _aggregator(request):
    aggregator = request.crm_session.aggregator

    # Background polling disabled or not run yet: fill the feed inline.
    # After a failure only the scheduler or an explicit refresh retries.
    if aggregator.last_refreshed_at is None and aggregator.last_error is None:
        aggregator.refresh()

    return aggregator


@require_GET
def notification_list(request):
    aggregator = _aggregator(request)
    if aggregator.closed:
        return end_session(request)

    # Optional filters
    kind = request.GET.get("kind")
    unread_only = request.GET.get("unread")

    items = list(aggregator.notifications)

    if kind:
        items = [n for n in items if n.kind == kind]

    if unread_only:
        items = [n for n in items if not n.read]

    paginator = Paginator(items, 20)
    page_obj = paginator.get_page(request.GET.get("page"))

    return JsonResponse(
        {
            "notifications": [n.to_dict() for n in page_obj.object_list],
            "unread_count": aggregator.unread_count,
            "page": page_obj.number,
            "num_pages": paginator.num_pages,
            "kinds": Notification.Kind.choices,
            "last_refreshed_at": (
                aggregator.last_refreshed_at.isoformat()
                if aggregator.last_refreshed_at
                else None
            ),
            # Background failures are not errors for the user, just stale data
            "stale": aggregator.last_error is not None,
        }
    )


@require_GET
def unread_count(request):
    aggregator = _aggregator(request)
    if aggregator.closed:
        return end_session(request)
    return JsonResponse({"unread_count": aggregator.unread_count})


@require_POST
def mark_read(request, notification_id):
    aggregator = request.crm_session.aggregator
    found = aggregator.mark_as_read(notification_id)

    return JsonResponse(
        {"success": found, "unread_count": aggregator.unread_count},
        status=200 if found else 404,
    )


@require_POST
def mark_all_read(request):
    aggregator = request.crm_session.aggregator
    marked = aggregator.mark_all_as_read()

    return JsonResponse(
        {"success": True, "marked": marked, "unread_count": aggregator.unread_count}
    )


@require_POST
def refresh(request):
    aggregator = request.crm_session.aggregator
    refreshed = aggregator.refresh()
    if aggregator.closed:
        return end_session(request)

    return JsonResponse(
        {
            "success": refreshed,
            "unread_count": aggregator.unread_count,
            "stale": aggregator.last_error is not None,
        }
    )
