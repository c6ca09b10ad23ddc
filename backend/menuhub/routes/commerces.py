# Overview: Flask API routes for commerce (tenant) operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_superuser
from ..errors import MediaHostError
from ..services import commerce_service


commerces_bp = Blueprint("commerces", __name__, url_prefix="/api/commerces")


@commerces_bp.get("")
@require_auth
@require_superuser
def list_commerces():
    commerces = commerce_service.list_commerces(g.identity)
    return jsonify([commerce.to_dict() for commerce in commerces]), 200


@commerces_bp.post("")
@require_auth
@require_superuser
def create_commerce():
    data = request.get_json(silent=True)
    commerce, owner = commerce_service.create_commerce(g.identity, data)
    return jsonify({
        "message": "Commerce created",
        "commerce": commerce.to_dict(),
        "owner": owner.to_dict(),
    }), 201


@commerces_bp.get("/<int:commerce_id>")
@require_auth
def get_commerce(commerce_id: int):
    commerce = commerce_service.get_commerce(g.identity, commerce_id)
    return jsonify(commerce.to_dict()), 200


@commerces_bp.put("/<int:commerce_id>")
@require_auth
def update_commerce(commerce_id: int):
    data = request.get_json(silent=True)
    commerce = commerce_service.update_commerce(g.identity, commerce_id, data)
    return jsonify(commerce.to_dict()), 200


@commerces_bp.delete("/<int:commerce_id>")
@require_auth
@require_superuser
def delete_commerce(commerce_id: int):
    summary = commerce_service.delete_commerce(g.identity, commerce_id)
    return jsonify({"message": "Commerce deleted", **summary}), 200


def _replace_branding(commerce_id: int, kind: str):
    try:
        commerce = commerce_service.replace_branding_image(
            g.identity, commerce_id, kind, request.files.get("image")
        )
    except MediaHostError:
        current_app.logger.exception("Failed to upload %s for commerce %s", kind, commerce_id)
        return jsonify({"error": "Error uploading image"}), 500
    return jsonify(commerce.to_dict()), 200


@commerces_bp.put("/<int:commerce_id>/update-logo")
@require_auth
def update_logo(commerce_id: int):
    return _replace_branding(commerce_id, "logo")


@commerces_bp.put("/<int:commerce_id>/update-banner")
@require_auth
def update_banner(commerce_id: int):
    return _replace_branding(commerce_id, "banner")
