"""Service-layer exceptions for the content API.

Every failure a service can report derives from ServiceError. The web layer
maps each subclass onto one HTTP status code, so services never deal with
HTTP concerns directly.
"""

from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    """Base exception for all service layer errors.

    Carries an error code and context data for logging alongside a
    message that is safe to show to API clients.
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
        user_message: str | None = None
    ):
        """Initialize service error.

        Args:
            message: Technical error message for logging
            error_code: Unique error code for categorization
            context: Additional context data for debugging
            user_message: Client-facing error message
        """
        super().__init__(message)
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.user_message = user_message or message

    def __str__(self) -> str:
        return super().__str__()

    def get_user_message(self) -> str:
        """Get client-facing error message."""
        return self.user_message


class ValidationError(ServiceError):
    """Malformed or missing required input."""

    def __init__(self, field: str, message: str, **kwargs):
        """Initialize validation error.

        Args:
            field: Field name that failed validation
            message: Validation error message
            **kwargs: Additional arguments passed to parent
        """
        super().__init__(
            f"Validation failed for {field}: {message}",
            error_code="VALIDATION_FAILED",
            context={"field": field},
            user_message=message,
            **kwargs
        )
        self.field = field


class AuthError(ServiceError):
    """Missing or invalid bearer credential."""

    def __init__(self, message: str = "Unauthorized", **kwargs):
        super().__init__(
            message,
            error_code="AUTH_REQUIRED",
            **kwargs
        )


class ForbiddenError(ServiceError):
    """Authenticated caller is not allowed to act on the target resource."""

    def __init__(self, resource_type: str, resource_id: str, caller_id: str | None = None, **kwargs):
        super().__init__(
            f"Caller {caller_id} may not modify {resource_type} {resource_id}",
            error_code="FORBIDDEN",
            context={
                "resource_type": resource_type,
                "resource_id": resource_id,
                "caller_id": caller_id,
            },
            user_message="Forbidden",
            **kwargs
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class NotFoundError(ServiceError):
    """Exception for missing resources.

    Also raised for orphaned published-index entries whose full record
    no longer exists.
    """

    def __init__(self, resource_type: str, resource_id: str, **kwargs):
        """Initialize resource not found error.

        Args:
            resource_type: Type of resource (e.g., "blog", "user")
            resource_id: ID or slug of the missing resource
            **kwargs: Additional arguments passed to parent
        """
        super().__init__(
            f"{resource_type.title()} not found: {resource_id}",
            error_code="RESOURCE_NOT_FOUND",
            context={"resource_type": resource_type, "resource_id": resource_id},
            user_message=f"{resource_type.title()} not found",
            **kwargs
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class StoreError(ServiceError):
    """Underlying key-value store failure. Not retried."""

    def __init__(self, operation: str, key: str, cause: Exception | None = None, **kwargs):
        super().__init__(
            f"Store {operation} failed for key {key}: {cause}",
            error_code="STORE_FAILURE",
            context={"operation": operation, "key": key},
            user_message="A storage error occurred",
            **kwargs
        )
        self.operation = operation
        self.key = key


class IdentityProviderError(ServiceError):
    """The identity provider could not be reached or answered unexpectedly."""

    def __init__(self, message: str, status_code: int | None = None, **kwargs):
        super().__init__(
            message,
            error_code="IDENTITY_PROVIDER_FAILURE",
            context={"status_code": status_code},
            user_message="Identity provider unavailable",
            **kwargs
        )
        self.status_code = status_code
