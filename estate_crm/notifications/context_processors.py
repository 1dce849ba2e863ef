"""
Context Processors for Notifications
====================================

Provides global template variables for the notification bell.

Enable in settings.py:

TEMPLATES = [
    {
        "OPTIONS": {
            "context_processors": [
                # ...
                "notifications.context_processors.unread_notifications",
            ],
        },
    },
]
"""


def unread_notifications(request):
    """
    Template usage:
        {% if has_unread_notifications %}
            <span class="badge">{{ unread_notifications_count }}</span>
        {% endif %}
    """
    crm_session = getattr(request, "crm_session", None)

    if crm_session is None:
        return {
            "unread_notifications_count": 0,
            "has_unread_notifications": False,
        }

    count = crm_session.aggregator.unread_count

    return {
        "unread_notifications_count": count,
        "has_unread_notifications": count > 0,
    }
