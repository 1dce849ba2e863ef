from django.urls import path

from .views import mark_all_read, mark_read, notification_list, refresh, unread_count

app_name = "notifications"

urlpatterns = [
    path("", notification_list, name="list"),
    path("unread-count/", unread_count, name="unread-count"),
    path("read-all/", mark_all_read, name="read-all"),
    path("refresh/", refresh, name="refresh"),
    path("<str:notification_id>/read/", mark_read, name="read"),
]
