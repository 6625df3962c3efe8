"""Custom exception classes for the application."""

from __future__ import annotations

from typing import Any


class AppException(Exception):
    """Base application exception.

    All custom exceptions inherit from this class. Fields follow
    RFC 7807 Problem Details so the HTTP layer can render them directly.

    Attributes:
        status_code: HTTP status code for the error.
        detail: Human-readable error message.
        type: Error type identifier (used in RFC 7807 problem details).
        title: Short, human-readable summary of the problem type.
        instance: URI reference that identifies the specific occurrence of the problem.
        extra: Additional context-specific information about the error.

    Example:
        raise AppException(
            status_code=404,
            detail="Preferences not found",
            type="preferences-not-found",
            extra={"user_id": "u-42"},
        )
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",
        title: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application exception.

        Args:
            status_code: HTTP status code.
            detail: Human-readable error message.
            type: Error type identifier.
            title: Short summary of the problem type.
            instance: URI reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or self._default_title(status_code)
        self.instance = instance
        self.extra = extra or {}
        super().__init__(detail)

    @staticmethod
    def _default_title(status_code: int) -> str:
        """Get default title for HTTP status code."""
        titles = {
            400: "Bad Request",
            401: "Unauthorized",
            403: "Forbidden",
            404: "Not Found",
            409: "Conflict",
            422: "Unprocessable Entity",
            500: "Internal Server Error",
            502: "Bad Gateway",
            503: "Service Unavailable",
        }
        return titles.get(status_code, "Error")


class UnauthorizedException(AppException):
    """Exception raised when no authenticated user accompanies a request."""

    def __init__(
        self,
        detail: str = "Authentication required",
        type: str = "unauthorized",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=401,
            detail=detail,
            type=type,
            title="Unauthorized",
            instance=instance,
            extra=extra,
        )


# ============================================================================
# Notification / reminder errors
# ============================================================================


class UnsupportedEnvironmentError(AppException):
    """The host exposes no notification primitive.

    Example:
        raise UnsupportedEnvironmentError()
    """

    def __init__(
        self,
        detail: str = "Notifications are not supported in this environment",
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=400,
            detail=detail,
            type="notifications-unsupported",
            title="Notifications Unsupported",
            extra=extra,
        )


class PermissionDeniedError(AppException):
    """Notification permission is not granted and could not be obtained."""

    def __init__(
        self,
        detail: str = "Notification permission was refused",
        permission: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        merged = {**(extra or {})}
        if permission is not None:
            merged["permission"] = permission
        super().__init__(
            status_code=403,
            detail=detail,
            type="notification-permission-denied",
            title="Permission Denied",
            extra=merged,
        )


class PermissionRequestError(AppException):
    """The platform raised unexpectedly while requesting permission.

    Never raised by the permission gate itself: it is recorded on
    ``PermissionGate.last_error`` and the request resolves to ``False``.
    """

    def __init__(
        self,
        detail: str = "Unable to request notification permission",
        cause: BaseException | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        merged = {**(extra or {})}
        if cause is not None:
            merged["cause"] = f"{type(cause).__name__}: {cause}"
        self.cause = cause
        super().__init__(
            status_code=502,
            detail=detail,
            type="notification-permission-request-failed",
            title="Permission Request Failed",
            extra=merged,
        )


class PreferencesDisabledError(AppException):
    """Push notifications are disabled by the user's preferences."""

    def __init__(
        self,
        detail: str = "Push notifications are disabled in your preferences",
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=409,
            detail=detail,
            type="push-notifications-disabled",
            title="Push Notifications Disabled",
            extra=extra,
        )


class PastReminderError(AppException):
    """The computed fire time is not in the future."""

    def __init__(
        self,
        detail: str = "A reminder cannot be scheduled in the past",
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=422,
            detail=detail,
            type="reminder-in-past",
            title="Reminder In The Past",
            extra=extra,
        )


class PersistenceError(AppException):
    """A preference or log store operation failed."""

    def __init__(
        self,
        detail: str = "Unable to persist notification data",
        operation: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        merged = {**(extra or {})}
        if operation is not None:
            merged["operation"] = operation
        super().__init__(
            status_code=503,
            detail=detail,
            type="notification-persistence-error",
            title="Persistence Error",
            extra=merged,
        )


class SchedulingError(AppException):
    """Catch-all for reminder scheduler invariant violations."""

    def __init__(
        self,
        detail: str,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=500,
            detail=detail,
            type="reminder-scheduling-error",
            title="Scheduling Error",
            extra=extra,
        )
