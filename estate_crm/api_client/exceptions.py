"""
Typed failures raised by the CRM API client.

Callers distinguish them as follows:
- ApiAuthenticationError -> the login has ended, the CRM session is closed
- ApiAuthorizationError  -> "access denied" path (never show placeholder data)
- ApiValidationError     -> field-by-field errors back to the form
- everything else        -> generic, retry-later failure
"""


class ApiError(Exception):
    """Base class for every failure coming from the remote CRM API."""

    def __init__(self, message, *, status_code=None, payload=None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class ApiNetworkError(ApiError):
    """Connection problem, timeout, server error or undecodable body."""


class ApiAuthenticationError(ApiError):
    """HTTP 401: the access token is no longer accepted and could not be refreshed."""


class ApiAuthorizationError(ApiError):
    """HTTP 403: the acting user may not do this."""


class ApiNotFoundError(ApiError):
    """HTTP 404."""


class ApiValidationError(ApiError):
    """HTTP 400 with per-field messages."""

    @property
    def field_errors(self):
        if not isinstance(self.payload, dict):
            return {}

        errors = {}
        for field, value in self.payload.items():
            if isinstance(value, (list, tuple)):
                errors[field] = [str(v) for v in value]
            else:
                errors[field] = [str(value)]
        return errors
