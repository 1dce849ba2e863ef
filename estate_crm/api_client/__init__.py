from .client import CrmApiClient
from .exceptions import (
    ApiAuthenticationError,
    ApiAuthorizationError,
    ApiError,
    ApiNetworkError,
    ApiNotFoundError,
    ApiValidationError,
)

__all__ = [
    "CrmApiClient",
    "ApiError",
    "ApiNetworkError",
    "ApiAuthenticationError",
    "ApiAuthorizationError",
    "ApiNotFoundError",
    "ApiValidationError",
]
