import json

from django.http import QueryDict


def request_data(request):
    """
    Form-encoded POST data or a JSON body (PUT requests are JSON only).
    Returns a QueryDict-like mapping Django forms accept.
    """
    if request.content_type == "application/json":
        try:
            payload = json.loads(request.body or b"{}")
        except ValueError:
            payload = None

        if not isinstance(payload, dict):
            return None
        return payload

    if request.method == "POST":
        return request.POST

    return QueryDict(request.body)
