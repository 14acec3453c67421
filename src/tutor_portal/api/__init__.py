"""API: cliente HTTP y espacios de nombres por recurso."""

from .client import ApiClient, ApiConnectionError, ApiError, ApiResponse, Pagination
from .resources import PortalAPI
from .uploads import MultipartForm, UploadFile, UploadValidationError

__all__ = [
    "ApiClient",
    "ApiConnectionError",
    "ApiError",
    "ApiResponse",
    "Pagination",
    "PortalAPI",
    "MultipartForm",
    "UploadFile",
    "UploadValidationError",
]
