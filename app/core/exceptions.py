"""Domain errors raised by services and rendered by the API."""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base class for errors surfaced verbatim to the caller."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    error_code: str = "APP_ERROR"
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, **details: Any) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ScopeError(AppError):
    """Principal has no resolvable tenant scope."""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = "SCOPE_ERROR"
    default_message = "User is not associated with any tenant"


class ForbiddenRoleCreation(AppError):
    """Creator's role may not create the requested role."""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN_ROLE_CREATION"
    default_message = "You don't have permission to create users with this role"


class CrossTenantViolation(AppError):
    """Resource lies outside the caller's tenant scope."""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = "CROSS_TENANT_VIOLATION"
    default_message = "Resource is outside your organization or school"


class DuplicateAccount(AppError):
    """Account with the same email already exists in the tenant."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "DUPLICATE_ACCOUNT"
    default_message = "Email already registered"


class AccountLocked(AppError):
    """Too many failed credential checks."""

    status_code = status.HTTP_423_LOCKED
    error_code = "ACCOUNT_LOCKED"
    default_message = "Account is temporarily locked. Please try again later."


class InvalidCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "INVALID_CREDENTIALS"
    default_message = "Incorrect email or password"


class InactiveAccount(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "INACTIVE_ACCOUNT"
    default_message = "Inactive user"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"
    default_message = "Not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"
    default_message = "Conflict"


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"
    default_message = "Invalid request"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an AppError as a JSON response."""
    headers = None
    if isinstance(exc, InvalidCredentials):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error_code": exc.error_code},
        headers=headers,
    )
