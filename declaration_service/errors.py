"""
Error taxonomy for the declaration service.

Every error carries the HTTP status it is surfaced as, so route handlers
can let them propagate to the single exception handler in app.py.
"""


class DeclarationServiceError(Exception):
    """Base class for all errors raised by the service."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DeclarationServiceError):
    """Required field missing, malformed, or over a configured size limit."""

    status_code = 400


class RequestTooLarge(DeclarationServiceError):
    """Request body exceeds the configured size limit."""

    status_code = 413


class InvalidImageEncoding(DeclarationServiceError):
    """Image payload is not a decodable base64 data URI."""

    status_code = 400


class MissingTemplate(DeclarationServiceError):
    """Template identifier is unknown or its file cannot be loaded."""

    status_code = 500


class BindingError(DeclarationServiceError):
    """Template referenced a field absent from the bound record."""

    status_code = 500


class RenderTimeout(DeclarationServiceError):
    """Page load or PDF export did not finish within the render bound."""

    status_code = 504


class RenderBackendUnavailable(DeclarationServiceError):
    """Chromium could not be started."""

    status_code = 503


class SinkWriteError(DeclarationServiceError):
    """Artifact could not be written under the upload root."""

    status_code = 500
