from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from accounts.forms import UserCreateForm, UserUpdateForm
from accounts.permissions import Resource, assignable_roles, authorize
from api_client.client import USERS_PATH

from ..errors import access_denied, form_errors, surface_api_errors, validation_failed
from .common import request_data

USERS_DENIED = "You are not authorized to view users. Please contact your administrator."
ADD_USER_DENIED = "You are not authorized to add users. Please contact your administrator."
EDIT_USER_DENIED = "You are not authorized to edit this user."


@require_http_methods(["GET", "POST"])
def users(request):
    if request.method == "POST":
        return create_user(request)
    return list_users(request)


@surface_api_errors(USERS_DENIED)
def list_users(request):
    crm = request.crm_session

    decision = authorize(crm.role, Resource.USER_ACCOUNTS)
    if not decision.allowed:
        return access_denied(decision.reason)

    records = crm.client.list_users()

    return JsonResponse(
        {
            "users": records,
            "total_users": len(records),
            "assignable_roles": [value for value, _ in assignable_roles(crm.role)],
        }
    )


@surface_api_errors(ADD_USER_DENIED)
def create_user(request):
    """
    Always returns JSON with detailed error messages.
    The role hierarchy is checked before the form and before the API.
    """
    crm = request.crm_session

    data = request_data(request)
    if data is None:
        return validation_failed({"general": ["Request body must be a JSON object."]})

    target_role = data.get("role") or "AGENT"

    decision = authorize(crm.role, Resource.USER_ACCOUNTS, target_role=target_role)
    if not decision.allowed:
        return access_denied(decision.reason)

    form = UserCreateForm({**_as_dict(data), "role": target_role}, acting_role=crm.role)
    if not form.is_valid():
        return validation_failed(form_errors(form))

    created = crm.client.post(USERS_PATH, form.to_payload()) or {}

    return JsonResponse(
        {
            "success": True,
            "message": f"User '{form.cleaned_data['username']}' created successfully!",
            "user_id": created.get("id"),
        },
        status=201,
    )


@require_http_methods(["PUT"])
@surface_api_errors(EDIT_USER_DENIED)
def update_user(request, user_id):
    crm = request.crm_session

    decision = authorize(crm.role, Resource.USER_ACCOUNTS)
    if not decision.allowed:
        return access_denied(decision.reason)

    data = request_data(request)
    if data is None:
        return validation_failed({"general": ["Request body must be a JSON object."]})

    # Current role comes from the API, never from the request body
    existing = crm.client.get(f"{USERS_PATH}{user_id}/") or {}
    existing_role = existing.get("role")
    new_role = data.get("role") or existing_role

    decision = authorize(
        crm.role,
        Resource.USER_ACCOUNTS,
        target_role=new_role,
        existing_role=existing_role,
    )
    if not decision.allowed:
        return access_denied(decision.reason)

    # The API gets a full PUT: fields the body leaves out keep their current value
    form = UserUpdateForm(
        {**_current_values(existing), **_as_dict(data), "role": new_role},
        acting_role=crm.role,
        existing_role=existing_role,
    )
    if not form.is_valid():
        return validation_failed(form_errors(form))

    updated = crm.client.put(f"{USERS_PATH}{user_id}/", form.to_payload())

    return JsonResponse({"success": True, "message": "User updated.", "user": updated})


def _current_values(existing):
    return {
        field: existing[field]
        for field in UserUpdateForm.base_fields
        if existing.get(field) is not None
    }


def _as_dict(data):
    if hasattr(data, "dict"):
        return data.dict()
    return dict(data)
