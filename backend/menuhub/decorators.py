# Overview: Request decorators for API routes (bearer authentication and role checks).

from functools import wraps
from flask import request, jsonify, g

from .errors import UnauthenticatedError
from .services import token_service


def _is_authenticated() -> bool:
    return hasattr(g, 'identity')


def require_auth(f):
    """
    Require a valid bearer token and establish the caller's identity.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.identity: Identity(user_id, role, commerce_id)
    - g.commerce_id: The caller's commerce (None for SUPERUSER)

    SECURITY: Returns 401 if:
    - No Authorization header ("No token provided")
    - Not a "Bearer <token>" header ("Invalid token format")
    - Bad signature, expired token or OWNER token without a commerce
      ("Invalid or expired token")
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            identity = token_service.verify_header(request.headers.get("Authorization"))
        except UnauthenticatedError as exc:
            return jsonify(exc.to_dict()), exc.status_code

        g.identity = identity
        g.commerce_id = identity.commerce_id

        return f(*args, **kwargs)

    return decorated_function


def require_superuser(f):
    """Require @require_auth first; rejects OWNER callers with 403."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"error": "Authentication required"}), 401

        if not g.identity.is_superuser:
            return jsonify({"error": "Access denied. Superuser role required"}), 403

        return f(*args, **kwargs)

    return decorated_function
