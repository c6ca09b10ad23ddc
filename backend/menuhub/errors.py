# Overview: Domain error taxonomy shared by services and routes.

"""
Domain errors.

Services raise these; the app factory renders every subclass of CatalogError
as a JSON body {"error": message, ...extra} with the class' status code.

NotFoundError is deliberately used for cross-tenant access as well as for
missing rows, so callers cannot probe for the existence of other tenants' data.
"""
from __future__ import annotations


class CatalogError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, **extra):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.extra = extra

    def to_dict(self) -> dict:
        body = {"error": self.message}
        body.update(self.extra)
        return body


class ValidationError(CatalogError):
    """400-level input problem."""
    status_code = 400
    default_message = "Invalid request"


class AlreadyExistsError(CatalogError):
    """Unique constraint violation (duplicate subdomain or email)."""
    status_code = 400

    def __init__(self, field: str, message: str | None = None):
        super().__init__(message or f"{field} already exists", field=field)
        self.field = field


class NotFoundError(CatalogError):
    status_code = 404
    default_message = "Not found"


class ForbiddenError(CatalogError):
    status_code = 403
    default_message = "Forbidden"


class UnauthenticatedError(CatalogError):
    status_code = 401
    default_message = "Authentication required"


class MissingCredential(UnauthenticatedError):
    default_message = "No token provided"


class MalformedCredential(UnauthenticatedError):
    default_message = "Invalid token format"


class InvalidCredential(UnauthenticatedError):
    default_message = "Invalid or expired token"


class InvalidCredentials(UnauthenticatedError):
    """Login failure. Same message for unknown email and wrong password."""
    default_message = "Invalid credentials"


class MediaHostError(Exception):
    """Raised by the media host client; never rendered directly."""
