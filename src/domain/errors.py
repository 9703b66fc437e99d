"""
Error taxonomy for the diploma service.

Every fault the service reports to a caller belongs to one ErrorKind, and each
kind maps to exactly one HTTP status code. The message carried by an error is
what the caller sees; full detail (tracebacks, provider payloads) stays in the
logs.
"""

from enum import Enum


class ErrorKind(Enum):
    """Error categories and their HTTP status codes."""
    VALIDATION = 400
    AUTHORIZATION = 403
    METHOD = 405
    UPSTREAM = 500

    @property
    def status_code(self) -> int:
        return self.value

    @property
    def label(self) -> str:
        """Short label used in JSON error bodies."""
        return {
            ErrorKind.VALIDATION: 'Bad request',
            ErrorKind.AUTHORIZATION: 'Forbidden',
            ErrorKind.METHOD: 'Method not allowed',
            ErrorKind.UPSTREAM: 'Internal server error',
        }[self]


class DiplomaServiceError(Exception):
    """Base class for all errors reported to the caller."""
    kind = ErrorKind.UPSTREAM


class ValidationError(DiplomaServiceError):
    """Raised when the request is missing the token or a required field."""
    kind = ErrorKind.VALIDATION


class AuthorizationError(DiplomaServiceError):
    """Raised when the captcha token is rejected."""
    kind = ErrorKind.AUTHORIZATION


class MethodNotAllowedError(DiplomaServiceError):
    """Raised when the request uses a verb other than POST."""
    kind = ErrorKind.METHOD


class UpstreamError(DiplomaServiceError):
    """Raised when a collaborator (assets, PDF library, email provider) fails."""
    kind = ErrorKind.UPSTREAM


class ConfigurationError(UpstreamError):
    """Raised when a required secret or setting is missing."""
    pass


class DocumentGenerationError(UpstreamError):
    """Raised when the diploma PDF cannot be produced."""
    pass


class EmailDeliveryError(UpstreamError):
    """Raised when the email provider reports an error."""
    pass


class AssetFetchError(Exception):
    """Raised by asset providers when an asset cannot be loaded."""
    pass
