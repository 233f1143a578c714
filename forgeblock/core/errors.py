# forgeblock/core/errors.py
from typing import Optional


class ServiceError(Exception):
    """
    Base class for account-service errors.
    Each subclass carries the HTTP status and the stable error code the API
    layer uses when turning it into a `{success: false, ...}` response.
    """

    status_code: int = 400
    error_code: str = "validation_error"

    def __init__(self, message: str, *, detail: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class ValidationError(ServiceError):
    """Malformed, user-correctable input (400)."""
    status_code = 400
    error_code = "validation_error"


class AuthError(ServiceError):
    """Bad credentials, banned account, or an invalid/expired/superseded token (401)."""
    status_code = 401
    error_code = "unauthorized"


class NotFoundError(ServiceError):
    status_code = 404
    error_code = "not_found"


class ConflictError(ServiceError):
    """Duplicate username or email (409)."""
    status_code = 409
    error_code = "conflict"


class StorageError(ServiceError):
    """Transient backend failure. The message is always generic."""
    status_code = 503
    error_code = "storage_unavailable"

    def __init__(self, message: str = "Storage backend unavailable. Please try again.", **kwargs) -> None:
        super().__init__(message, **kwargs)


class ConfigurationError(RuntimeError):
    """Raised at startup when the process cannot run safely with the given settings."""
