"""
Domain exceptions raised by the service layer.

The error handling middleware maps each of these to an HTTP status so
services never import FastAPI.
"""


class ATSError(Exception):
    """Base class for service-layer errors."""

    status_code = 500
    code = "ATS_ERROR"
    envelope = True

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or self.code


class NotFoundError(ATSError):
    """Resource not found."""

    status_code = 404
    code = "NOT_FOUND"


class ConflictError(ATSError):
    """Resource already exists."""

    status_code = 409
    code = "CONFLICT"


class ValidationFailed(ATSError):
    """Request failed a business rule."""

    status_code = 400
    code = "VALIDATION_FAILED"


class ExternalServiceError(ATSError):
    """Hosted backend call failed."""

    status_code = 502
    code = "EXTERNAL_SERVICE_ERROR"


class FeatureDisabled(ATSError):
    """Feature is turned off."""

    status_code = 404
    code = "FEATURE_DISABLED"


class AdminError(ATSError):
    """
    Error from an admin endpoint.

    Rendered as a flat ``{"error": message}`` body, the shape admin
    clients read.
    """

    code = "ADMIN_ERROR"
    envelope = False

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code
