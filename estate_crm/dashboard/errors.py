"""
dashboard/errors.py

Turns failures into JSON answers the dashboard can show as-is.

- API no longer accepts the login  -> session closed, 401 "not_authenticated"
- Gate / API authorization failure -> 403, code "access_denied"
- Form / API validation failure    -> 400, field-by-field errors
- Any other API failure            -> 502, generic retry-later text
"""

import functools
import logging

from django.http import JsonResponse

from accounts.apps import get_session_registry
from api_client import (
    ApiAuthenticationError,
    ApiAuthorizationError,
    ApiError,
    ApiNotFoundError,
    ApiValidationError,
)

logger = logging.getLogger(__name__)

ACCESS_DENIED_MESSAGE = (
    "You are not authorized to perform this action. "
    "Please contact your administrator."
)
RETRY_LATER_MESSAGE = (
    "The CRM service could not complete the request. Please try again later."
)

SESSION_ENDED_MESSAGE = "Your session has ended. Please log in again."


def not_authenticated():
    return JsonResponse(
        {
            "success": False,
            "code": "not_authenticated",
            "error": SESSION_ENDED_MESSAGE,
        },
        status=401,
    )


def end_session(request):
    """The API stopped accepting this login: close the CRM session and say so."""
    logger.info("CRM login expired on %s %s, closing session", request.method, request.path)
    get_session_registry().unbind(request)
    request.crm_session = None
    return not_authenticated()


def access_denied(reason=None):
    return JsonResponse(
        {
            "success": False,
            "code": "access_denied",
            "error": reason or ACCESS_DENIED_MESSAGE,
        },
        status=403,
    )


def validation_failed(errors):
    return JsonResponse(
        {
            "success": False,
            "code": "invalid",
            "errors": errors,
            "error": "Please correct the errors below.",
        },
        status=400,
    )


def form_errors(form):
    """Field-label-prefixed errors, non-field errors under "general"."""
    formatted = {}
    for field, errors in form.errors.items():
        if field == "__all__":
            formatted["general"] = [str(e) for e in errors]
            continue

        label = str(form.fields[field].label or field.replace("_", " ").title())
        formatted[field] = [
            str(error) if str(error).startswith(label) else f"{label}: {error}"
            for error in errors
        ]
    return formatted


def surface_api_errors(denied_message=None):
    """
    View decorator mapping ApiError subclasses onto JSON responses.

    `denied_message` replaces the generic access-denied text with one
    specific to the screen.
    """

    def decorator(view):
        @functools.wraps(view)
        def wrapper(request, *args, **kwargs):
            try:
                return view(request, *args, **kwargs)

            except ApiAuthenticationError:
                return end_session(request)

            except ApiAuthorizationError as exc:
                logger.info("API denied %s %s: %s", request.method, request.path, exc)
                return access_denied(denied_message)

            except ApiValidationError as exc:
                return validation_failed(exc.field_errors or {"general": [str(exc)]})

            except ApiNotFoundError:
                return JsonResponse(
                    {
                        "success": False,
                        "code": "not_found",
                        "error": "The requested record no longer exists.",
                    },
                    status=404,
                )

            except ApiError as exc:
                logger.warning("API failure on %s %s: %s", request.method, request.path, exc)
                return JsonResponse(
                    {
                        "success": False,
                        "code": "unavailable",
                        "error": RETRY_LATER_MESSAGE,
                    },
                    status=502,
                )

        return wrapper

    return decorator
