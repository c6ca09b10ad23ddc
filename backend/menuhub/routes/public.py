# Overview: Public (unauthenticated) menu endpoint.

from flask import Blueprint, jsonify

from ..services import menu_service


public_bp = Blueprint("public", __name__, url_prefix="/api/public")


@public_bp.get("/<string:subdomain>")
def get_menu(subdomain: str):
    """
    Full menu of the commerce served at <subdomain>.

    404 {"error": "Commerce not found"} for an unknown subdomain.
    """
    return jsonify(menu_service.compose_menu(subdomain)), 200
