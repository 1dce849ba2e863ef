from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from accounts.permissions import Resource, authorize
from api_client.client import BUDGET_TIERS_PATH, PARISHES_PATH, SYSTEM_SETTINGS_PATH

from ..errors import access_denied, form_errors, surface_api_errors, validation_failed
from ..forms import BudgetTierForm, ParishForm, SystemSettingsForm
from .common import request_data

SETTINGS_DENIED = (
    "You are not authorized to view or change system settings. "
    "Please contact your administrator."
)
PARISHES_DENIED = (
    "You are not authorized to change parishes. Please contact your administrator."
)
BUDGET_TIERS_DENIED = (
    "You are not authorized to change budget tiers. Please contact your administrator."
)


def _bound_form(form_class, request):
    data = request_data(request)
    if data is None:
        return None
    return form_class(data)


def _invalid_body():
    return validation_failed({"general": ["Request body must be a JSON object."]})


# ============================================================
# SYSTEM SETTINGS
# ============================================================
@require_http_methods(["GET", "POST"])
@surface_api_errors(SETTINGS_DENIED)
def system_settings(request):
    crm = request.crm_session

    if request.method == "GET":
        return JsonResponse({"settings": crm.client.system_settings()})

    decision = authorize(crm.role, Resource.SYSTEM_SETTINGS, write=True)
    if not decision.allowed:
        return access_denied(decision.reason)

    form = _bound_form(SystemSettingsForm, request)
    if form is None:
        return _invalid_body()
    if not form.is_valid():
        return validation_failed(form_errors(form))

    saved = crm.client.post(SYSTEM_SETTINGS_PATH, form.to_payload())

    return JsonResponse(
        {
            "success": True,
            "message": "System settings saved successfully!",
            "settings": saved or form.to_payload(),
        }
    )


# ============================================================
# REFERENCE DATA (PARISHES, BUDGET TIERS)
# ============================================================
def _reference_collection(request, *, path, form_class, fetch, denied, noun):
    crm = request.crm_session

    if request.method == "GET":
        return JsonResponse({"results": fetch()})

    decision = authorize(crm.role, Resource.REFERENCE_DATA, write=True)
    if not decision.allowed:
        return access_denied(denied)

    form = _bound_form(form_class, request)
    if form is None:
        return _invalid_body()
    if not form.is_valid():
        return validation_failed(form_errors(form))

    created = crm.client.post(path, form.to_payload())

    return JsonResponse(
        {"success": True, "message": f"{noun} added successfully!", "record": created},
        status=201,
    )


def _reference_detail(request, record_id, *, path, form_class, denied, noun):
    crm = request.crm_session

    decision = authorize(crm.role, Resource.REFERENCE_DATA, write=True)
    if not decision.allowed:
        return access_denied(denied)

    record_path = f"{path}{record_id}/"

    if request.method == "DELETE":
        crm.client.delete(record_path)
        return JsonResponse({"success": True, "message": f"{noun} deleted."})

    form = _bound_form(form_class, request)
    if form is None:
        return _invalid_body()
    if not form.is_valid():
        return validation_failed(form_errors(form))

    updated = crm.client.put(record_path, {"id": record_id, **form.to_payload()})

    return JsonResponse({"success": True, "message": f"{noun} updated.", "record": updated})


@require_http_methods(["GET", "POST"])
@surface_api_errors(PARISHES_DENIED)
def parishes(request):
    return _reference_collection(
        request,
        path=PARISHES_PATH,
        form_class=ParishForm,
        fetch=request.crm_session.client.list_parishes,
        denied=PARISHES_DENIED,
        noun="Parish",
    )


@require_http_methods(["PUT", "DELETE"])
@surface_api_errors(PARISHES_DENIED)
def parish_detail(request, parish_id):
    return _reference_detail(
        request,
        parish_id,
        path=PARISHES_PATH,
        form_class=ParishForm,
        denied=PARISHES_DENIED,
        noun="Parish",
    )


@require_http_methods(["GET", "POST"])
@surface_api_errors(BUDGET_TIERS_DENIED)
def budget_tiers(request):
    return _reference_collection(
        request,
        path=BUDGET_TIERS_PATH,
        form_class=BudgetTierForm,
        fetch=request.crm_session.client.list_budget_tiers,
        denied=BUDGET_TIERS_DENIED,
        noun="Budget tier",
    )


@require_http_methods(["PUT", "DELETE"])
@surface_api_errors(BUDGET_TIERS_DENIED)
def budget_tier_detail(request, tier_id):
    return _reference_detail(
        request,
        tier_id,
        path=BUDGET_TIERS_PATH,
        form_class=BudgetTierForm,
        denied=BUDGET_TIERS_DENIED,
        noun="Budget tier",
    )
