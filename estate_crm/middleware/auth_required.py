from django.conf import settings
from django.http import JsonResponse
from django.shortcuts import redirect

from accounts.apps import get_session_registry
from accounts.permissions import Resource, authorize
from dashboard.errors import not_authenticated


class LoginRequiredMiddleware:
    """
    Attaches the live CrmSession to every request and blocks
    anonymous access outside the public prefixes.
    """

    def __init__(self, get_response):
        self.get_response = get_response

        self.PUBLIC_PREFIXES = (
            settings.LOGIN_URL,
            "/auth/",
            "/static/",
        )

        # Whole sections gated by role
        self.PROTECTED_PREFIXES = (
            ("/settings/users/", Resource.USER_ACCOUNTS),
        )

    def __call__(self, request):
        path = request.path

        # Expired CRM sessions are closed here and come back as None
        request.crm_session = get_session_registry().for_request(request)

        # Allow public paths
        if path.startswith(self.PUBLIC_PREFIXES):
            return self.get_response(request)

        # Block unauthenticated users
        if request.crm_session is None:
            if wants_json(request):
                return not_authenticated()
            return redirect(settings.LOGIN_URL)

        # 🔒 ROLE-BASED ACCESS CONTROL
        for prefix, resource in self.PROTECTED_PREFIXES:
            if path.startswith(prefix):
                decision = authorize(request.crm_session.role, resource)
                if not decision.allowed:
                    return JsonResponse(
                        {
                            "success": False,
                            "code": "access_denied",
                            "error": decision.reason,
                        },
                        status=403,
                    )

        return self.get_response(request)


def wants_json(request):
    # Every screen except the root page is a JSON endpoint
    if "application/json" in request.headers.get("Accept", ""):
        return True
    return request.path != "/"
