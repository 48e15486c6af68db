"""Services for the admin console."""
from .api_client import BackendClient
from .errors import BackendError, FormValidationError
from .geocoding import LocationSearchService, LocationPicker
from .resources import ResourceService

__all__ = [
    "BackendClient",
    "BackendError",
    "FormValidationError",
    "LocationSearchService",
    "LocationPicker",
    "ResourceService",
]
