"""Custom exception hierarchy for the tonfund API."""

from __future__ import annotations


class AppError(Exception):
    """Base application error with a stable machine-readable code."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        """Serialize the error in the API standard shape."""
        return {"error": self.message, "code": self.code}


class BadRequestError(AppError):
    """Raised when a well-formed request breaks a business rule."""

    def __init__(self, reason: str, code: str = "BAD_REQUEST") -> None:
        super().__init__(message=reason, code=code, status_code=400)


class InsufficientLimitError(BadRequestError):
    """Raised when a user tries to reserve more than their spending limit."""

    def __init__(self, required: int, available: int | None = None) -> None:
        message = (
            f"Not enough limit: need {required}, have {available}"
            if available is not None
            else f"Not enough limit: need {required}"
        )
        super().__init__(message, code="INSUFFICIENT_LIMIT")


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str) -> None:
        super().__init__(message=f"{resource} not found", code="NOT_FOUND", status_code=404)


class ForbiddenError(AppError):
    """Raised when the user lacks permission for the action."""

    def __init__(self, reason: str = "You don't have permission", code: str = "FORBIDDEN") -> None:
        super().__init__(message=reason, code=code, status_code=403)


class ConflictError(AppError):
    """Raised on duplicate/conflicting operations."""

    def __init__(self, reason: str, code: str = "CONFLICT") -> None:
        super().__init__(message=reason, code=code, status_code=409)


class UnauthorizedError(AppError):
    """Raised when the caller is not authenticated."""

    def __init__(self, reason: str = "Unauthorized", code: str = "UNAUTHORIZED") -> None:
        super().__init__(message=reason, code=code, status_code=401)


class InvalidInputError(AppError):
    """Raised for request payload or parameter validation issues."""

    def __init__(self, reason: str) -> None:
        super().__init__(message=reason, code="INVALID_INPUT", status_code=422)


class UpstreamError(AppError):
    """Raised when the chain API fails or returns something unusable."""

    def __init__(self, reason: str = "Chain API request failed") -> None:
        super().__init__(message=reason, code="UPSTREAM_ERROR", status_code=502)


class UpstreamTimeoutError(UpstreamError):
    """Raised when the chain API does not answer within the client timeout."""

    def __init__(self, reason: str = "Chain API request timed out") -> None:
        super().__init__(reason)
        self.code = "UPSTREAM_TIMEOUT"
        self.status_code = 504


class ConfigurationError(AppError):
    """Raised when a required secret or setting is missing."""

    def __init__(self, setting: str) -> None:
        super().__init__(
            message=f"{setting} is not configured",
            code="CONFIGURATION_ERROR",
            status_code=500,
        )
