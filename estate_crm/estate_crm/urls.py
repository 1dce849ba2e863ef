from django.shortcuts import redirect
from django.urls import path, include


def root_redirect(request):
    if request.crm_session is not None:
        return redirect("dashboard:summary")
    return redirect("login")


urlpatterns = [
    # ROOT
    path("", root_redirect, name="root"),

    # AUTH
    path("auth/", include("accounts.urls")),

    # NOTIFICATION FEED
    path("notifications/", include("notifications.urls")),

    # DASHBOARD + SETTINGS SCREENS
    path("", include("dashboard.urls")),
]
