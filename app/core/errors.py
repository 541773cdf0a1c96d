"""Typed failures raised by the service layer.

Services never deal in HTTP status codes; the application entry point maps
each error kind onto a response.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for all expected service failures."""

    kind = "internal"
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(ServiceError):
    """Raised for malformed or missing input."""

    kind = "validation_failed"
    default_message = "Invalid input"


class AuthRequired(ServiceError):
    """Raised when a request carries no credential."""

    kind = "auth_required"
    default_message = "Unauthorized request"


class AuthInvalid(ServiceError):
    """Raised when a credential cannot be verified or its identity is gone."""

    kind = "auth_invalid"
    default_message = "Invalid or expired token"


class Forbidden(ServiceError):
    """Raised when an authenticated identity may not act on a resource."""

    kind = "forbidden"
    default_message = "You are not authorized to perform this action"


class NotFound(ServiceError):
    kind = "not_found"
    default_message = "Resource not found"


class Conflict(ServiceError):
    """Raised when storage reports a uniqueness violation."""

    kind = "conflict"
    default_message = "Resource already exists"


class UploadFailed(ServiceError):
    """Raised when the media store rejects an upload or deletion."""

    kind = "upload_failed"
    default_message = "Media upload failed"


class InternalError(ServiceError):
    kind = "internal"
