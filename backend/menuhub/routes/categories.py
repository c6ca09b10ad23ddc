# Overview: Flask API routes for category operations; parses input and returns JSON responses.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth
from ..services import category_service
from ..validation import parse_reorder_batch, query_int


categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
def list_categories():
    commerce_id = request.args.get("commerce_id", type=query_int)
    categories = category_service.list_categories(g.identity, commerce_id)
    return jsonify([category.to_dict() for category in categories]), 200


@categories_bp.post("")
@require_auth
def create_category():
    data = request.get_json(silent=True)
    category = category_service.create_category(g.identity, data)
    return jsonify(category.to_dict()), 201


@categories_bp.post("/reorder")
@require_auth
def reorder_categories():
    """
    Body: {"categories": [{"id": 3, "position": 0}, {"id": 1, "position": 1}]}

    All positions are applied in one transaction or none are.
    """
    updates = parse_reorder_batch(request.get_json(silent=True))
    categories = category_service.reorder_categories(g.identity, updates)
    return jsonify({
        "message": "Categories reordered",
        "categories": [category.to_dict() for category in categories],
    }), 200


@categories_bp.get("/<int:category_id>")
@require_auth
def get_category(category_id: int):
    category = category_service.get_category(g.identity, category_id)
    return jsonify(category.to_dict()), 200


@categories_bp.put("/<int:category_id>")
@require_auth
def update_category(category_id: int):
    data = request.get_json(silent=True)
    category = category_service.update_category(g.identity, category_id, data)
    return jsonify(category.to_dict()), 200


@categories_bp.delete("/<int:category_id>")
@require_auth
def delete_category(category_id: int):
    deleted = category_service.delete_category(g.identity, category_id)
    return jsonify({"message": "Category deleted", "category": deleted}), 200
