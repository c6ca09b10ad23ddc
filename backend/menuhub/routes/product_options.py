# Overview: Flask API routes for product options and option items; parses input and returns JSON responses.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth
from ..services import option_service


product_options_bp = Blueprint("product_options", __name__, url_prefix="/api/product-options")


@product_options_bp.get("/<int:product_id>")
@require_auth
def list_options(product_id: int):
    options = option_service.list_options(g.identity, product_id)
    return jsonify([option.to_dict(include_items=True) for option in options]), 200


@product_options_bp.post("")
@require_auth
def create_option():
    data = request.get_json(silent=True)
    option = option_service.create_option(g.identity, data)
    return jsonify(option.to_dict(include_items=True)), 201


@product_options_bp.put("/<int:option_id>")
@require_auth
def update_option(option_id: int):
    """
    Update an option. When "items" is present the option's items are
    replaced by it: entries with an id are updated, entries without one are
    created, and stored items that are not listed are deleted.
    """
    data = request.get_json(silent=True)
    option = option_service.update_option(g.identity, option_id, data)
    return jsonify(option.to_dict(include_items=True)), 200


@product_options_bp.delete("/<int:option_id>")
@require_auth
def delete_option(option_id: int):
    deleted = option_service.delete_option(g.identity, option_id)
    return jsonify({"message": "Option deleted", "option": deleted}), 200


@product_options_bp.post("/<int:option_id>/items")
@require_auth
def add_item(option_id: int):
    data = request.get_json(silent=True)
    item = option_service.add_item(g.identity, option_id, data)
    return jsonify(item.to_dict()), 201


@product_options_bp.put("/items/<int:item_id>")
@require_auth
def update_item(item_id: int):
    data = request.get_json(silent=True)
    item = option_service.update_item(g.identity, item_id, data)
    return jsonify(item.to_dict()), 200


@product_options_bp.delete("/items/<int:item_id>")
@require_auth
def delete_item(item_id: int):
    deleted = option_service.delete_item(g.identity, item_id)
    return jsonify({"message": "Item deleted", "item": deleted}), 200
