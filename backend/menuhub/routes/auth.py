# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- POST /login            email + password -> bearer token
- POST /register         SUPERUSER creates a user
- POST /verify-password  SUPERUSER re-checks their password before sensitive actions
- GET  /check-email/<e>  email availability
- GET  /me               caller identity and profile
"""

from flask import Blueprint, request, jsonify, g

from ..services import auth_service
from ..decorators import require_auth, require_superuser
from ..errors import NotFoundError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and mint a bearer token.

    SECURITY: unknown email and wrong password produce the same 401.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        return jsonify({"error": "email and password required"}), 400

    user, token = auth_service.login(email, password)
    return jsonify({
        "message": "Login successful",
        "token": token,
        "role": user.role.value,
        "user": user.to_dict(),
    }), 200


@auth_bp.post("/register")
@require_auth
def register_route():
    """Create a user. Only SUPERUSER callers succeed; see auth_service.register_user."""
    data = request.get_json(silent=True)
    user = auth_service.register_user(g.identity, data)
    return jsonify({"message": "User created", "user": user.to_dict()}), 201


@auth_bp.post("/verify-password")
@require_auth
@require_superuser
def verify_password_route():
    data = request.get_json(silent=True) or {}
    auth_service.confirm_superuser_password(g.identity, data.get("password"))
    return jsonify({"valid": True}), 200


@auth_bp.get("/check-email/<path:email>")
def check_email_route(email: str):
    available = auth_service.email_available(email)
    return jsonify({"isAvailable": available, "exists": not available}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    user = auth_service.get_user(g.identity.user_id)
    if user is None:
        raise NotFoundError("User not found")

    payload = user.to_dict()
    if user.commerce is not None:
        payload["commerce"] = user.commerce.to_public_dict()
    return jsonify({"user": payload, "identity": g.identity.to_dict()}), 200
