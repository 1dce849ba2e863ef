from .notification_views import (
    mark_all_read,
    mark_read,
    notification_list,
    refresh,
    unread_count,
)

__all__ = [
    "notification_list",
    "unread_count",
    "mark_read",
    "mark_all_read",
    "refresh",
]
