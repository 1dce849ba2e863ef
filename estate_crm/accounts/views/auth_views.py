import logging

from django.http import JsonResponse
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_http_methods, require_POST

from accounts.apps import get_session_registry
from accounts.permissions import assignable_roles, can_manage_users, can_view_commission_stats
from api_client import ApiAuthenticationError, ApiAuthorizationError, ApiError

logger = logging.getLogger(__name__)


# The front-end reads csrftoken from here before its first POST
@ensure_csrf_cookie
@require_http_methods(["GET", "POST"])
def login_view(request):
    registry = get_session_registry()

    if request.crm_session is not None:
        return JsonResponse({"success": True, "user": session_payload(request.crm_session)})

    if request.method == "GET":
        return JsonResponse(
            {"success": False, "error": "Please log in with your CRM username and password."},
            status=401,
        )

    username = (request.POST.get("username") or "").strip()
    password = request.POST.get("password") or ""

    if not username or not password:
        return JsonResponse(
            {
                "success": False,
                "errors": {
                    field: ["This field is required."]
                    for field, value in (("username", username), ("password", password))
                    if not value
                },
                "error": "Please enter your username and password.",
            },
            status=400,
        )

    try:
        crm_session = registry.login(username, password)
    except (ApiAuthenticationError, ApiAuthorizationError):
        return JsonResponse(
            {"success": False, "error": "Invalid username or password"},
            status=401,
        )
    except ApiError as exc:
        logger.warning("Login for %s failed: %s", username, exc)
        return JsonResponse(
            {
                "success": False,
                "error": "The CRM service is unavailable. Please try again later.",
            },
            status=502,
        )

    request.session.cycle_key()
    registry.bind(request, crm_session)

    return JsonResponse({"success": True, "user": session_payload(crm_session)})


@require_POST
def logout_view(request):
    get_session_registry().unbind(request)
    return JsonResponse({"success": True})


@ensure_csrf_cookie
def me_view(request):
    if request.crm_session is None:
        return JsonResponse({"authenticated": False}, status=401)

    return JsonResponse({"authenticated": True, "user": session_payload(request.crm_session)})


def session_payload(crm_session):
    role = crm_session.role
    return {
        "id": crm_session.user.get("id"),
        "username": crm_session.username,
        "display_name": crm_session.display_name,
        "email": crm_session.user.get("email", ""),
        "role": role.value if role else None,
        "permissions": {
            "view_commission_stats": can_view_commission_stats(role),
            "manage_users": can_manage_users(role),
            "assignable_roles": [value for value, _ in assignable_roles(role)],
        },
    }
