"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"

    # Not found errors (404)
    NOTIFICATION_NOT_FOUND = "NOTIFICATION_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNKNOWN_EVENT = "UNKNOWN_EVENT"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"

    # Upstream provider errors (502/503)
    PUSH_PROVIDER_ERROR = "PUSH_PROVIDER_ERROR"
    PUSH_NOT_CONFIGURED = "PUSH_NOT_CONFIGURED"
    MAILER_ERROR = "MAILER_ERROR"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


class NotificationNotFoundError(AppException):
    """Notification not found, or not owned by the requesting user."""

    def __init__(self, notification_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.NOTIFICATION_NOT_FOUND,
            message=f"Notification not found: {notification_id}",
            status_code=404,
            details={"notification_id": notification_id},
        )


class UnknownEventError(AppException):
    """Event name is not part of the application event catalogue."""

    def __init__(self, event_name: str) -> None:
        super().__init__(
            error_code=ErrorCode.UNKNOWN_EVENT,
            message=f"Unknown event: {event_name}",
            status_code=400,
            details={"event": event_name},
        )


class PushProviderError(AppException):
    """The push provider rejected a call or could not be reached."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(
            error_code=ErrorCode.PUSH_PROVIDER_ERROR,
            message=f"{provider}: {message}",
            status_code=502,
            details={"provider": provider},
        )


class PushNotConfiguredError(AppException):
    """An operation needs a push provider but none is configured."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.PUSH_NOT_CONFIGURED,
            message="Push notifications are not configured",
            status_code=503,
        )


class MailerError(AppException):
    """The mail provider failed to accept a message."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(
            error_code=ErrorCode.MAILER_ERROR,
            message=f"{provider}: {message}",
            status_code=502,
            details={"provider": provider},
        )
