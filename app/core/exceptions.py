"""
Custom exceptions for the Content Moderation Gateway.

Each failure the moderation handler can hit has its own exception type, so the
HTTP layer can map it to a status code and a stable ``error_code`` without
inspecting messages.
"""

from typing import Optional, Dict, Any


class ContentModeratorException(Exception):
    """Base exception for all moderation gateway errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "CONTENT_MODERATOR_ERROR",
        details: Optional[str] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class MethodNotAllowedException(ContentModeratorException):
    """Exception raised when a moderation route is called with anything but POST."""

    def __init__(self, method: str, allowed: str = "POST"):
        self.method = method
        self.allowed = allowed
        super().__init__(
            message="Method Not Allowed",
            error_code="METHOD_NOT_ALLOWED",
            details=f"{method} is not supported, use {allowed}"
        )


class BadRequestException(ContentModeratorException):
    """Exception raised when the request body lacks usable content."""

    def __init__(
        self,
        message: str,
        field: str = "unknown",
        details: Optional[str] = None
    ):
        self.field = field
        super().__init__(
            message=message,
            error_code="BAD_REQUEST",
            details=details
        )


class ServerMisconfiguredException(ContentModeratorException):
    """Exception raised when a required setting (the Gemini credential) is missing."""

    def __init__(self, setting: str = "GEMINI_API_KEY"):
        self.setting = setting
        super().__init__(
            message=f"Server configuration error: {setting} environment variable is missing.",
            error_code="SERVER_MISCONFIGURED"
        )


class UpstreamEmptyException(ContentModeratorException):
    """Exception raised when Gemini returns no structured content."""

    def __init__(self, message: str = "Gemini API returned no structured content."):
        super().__init__(
            message=message,
            error_code="UPSTREAM_EMPTY"
        )


class UpstreamParseException(ContentModeratorException):
    """Exception raised when the Gemini payload is not valid JSON."""

    def __init__(
        self,
        message: str = "Gemini API returned content that is not valid JSON.",
        details: Optional[str] = None,
        error_code: str = "UPSTREAM_PARSE_ERROR"
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            details=details
        )


class UpstreamContractViolationException(UpstreamParseException):
    """Exception raised when the parsed Gemini payload is not a complete verdict."""

    def __init__(self, missing_fields=(), details: Optional[str] = None):
        self.missing_fields = list(missing_fields)
        if details is None and self.missing_fields:
            details = "missing fields: " + ", ".join(self.missing_fields)
        super().__init__(
            message="Gemini API response does not match the verdict schema.",
            details=details,
            error_code="UPSTREAM_CONTRACT_VIOLATION"
        )


class UpstreamTransportException(ContentModeratorException):
    """Exception raised when the call to Gemini itself fails."""

    def __init__(
        self,
        message: str,
        provider: str = "gemini",
        details: Optional[str] = None
    ):
        self.provider = provider
        super().__init__(
            message=message,
            error_code="UPSTREAM_TRANSPORT_ERROR",
            details=details
        )


def get_status_code(exception: ContentModeratorException) -> int:
    """
    Resolve the HTTP status code for an exception.

    The class hierarchy is walked so subclasses inherit their parent's status
    unless they are mapped explicitly.

    Args:
        exception: Custom exception instance

    Returns:
        HTTP status code, 500 when nothing matches
    """
    for klass in type(exception).__mro__:
        if klass in EXCEPTION_STATUS_MAPPING:
            return EXCEPTION_STATUS_MAPPING[klass]
    return 500


def create_error_response(exception: ContentModeratorException) -> Dict[str, Any]:
    """
    Convert custom exception to the JSON error body sent to clients.

    Args:
        exception: Custom exception instance

    Returns:
        Dict with ``error``, ``error_code`` and, when known, ``details``
    """
    body: Dict[str, Any] = {
        "error": exception.message,
        "error_code": exception.error_code,
    }
    if exception.details:
        body["details"] = exception.details
    return body


# Exception to HTTP status code mapping
EXCEPTION_STATUS_MAPPING = {
    MethodNotAllowedException: 405,  # Method Not Allowed
    BadRequestException: 400,  # Bad Request
    ServerMisconfiguredException: 500,  # Internal Server Error
    UpstreamEmptyException: 500,
    UpstreamParseException: 500,
    UpstreamTransportException: 500,
    ContentModeratorException: 500,
}
