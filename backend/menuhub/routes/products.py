# Overview: Flask API routes for product operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import MediaHostError
from ..services import product_service
from ..validation import query_int


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    products = product_service.list_products(
        g.identity,
        commerce_id=request.args.get("commerce_id", type=query_int),
        category_id=request.args.get("category_id", type=query_int),
    )
    return jsonify([product.to_dict() for product in products]), 200


@products_bp.post("")
@require_auth
def create_product():
    data = request.get_json(silent=True)
    product = product_service.create_product(g.identity, data)
    return jsonify(product.to_dict()), 201


@products_bp.get("/<int:product_id>")
@require_auth
def get_product(product_id: int):
    product = product_service.get_product(g.identity, product_id)
    return jsonify(product.to_dict()), 200


@products_bp.put("/<int:product_id>")
@require_auth
def update_product(product_id: int):
    data = request.get_json(silent=True)
    product = product_service.update_product(g.identity, product_id, data)
    return jsonify(product.to_dict()), 200


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product(product_id: int):
    deleted = product_service.delete_product(g.identity, product_id)
    return jsonify({"message": "Product deleted", "product": deleted}), 200


@products_bp.put("/<int:product_id>/update-image")
@require_auth
def update_product_image(product_id: int):
    """Multipart upload, field "image"."""
    try:
        product = product_service.replace_product_image(g.identity, product_id, request.files.get("image"))
    except MediaHostError:
        current_app.logger.exception("Failed to upload image for product %s", product_id)
        return jsonify({"error": "Error uploading image"}), 500
    return jsonify(product.to_dict()), 200
