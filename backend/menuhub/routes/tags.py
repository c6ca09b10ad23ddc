# Overview: Flask API routes for tags and tag assignments; parses input and returns JSON responses.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth
from ..models import TagType
from ..services import tag_service
from ..validation import query_int


tags_bp = Blueprint("tags", __name__, url_prefix="/api/tags")

_KINDS = {
    "product": TagType.PRODUCT,
    "option": TagType.OPTION,
    "item": TagType.ITEM,
}


@tags_bp.get("")
@require_auth
def list_tags():
    tags = tag_service.list_tags(
        g.identity,
        commerce_id=request.args.get("commerce_id", type=query_int),
        tag_type=request.args.get("type"),
    )
    return jsonify([tag.to_dict() for tag in tags]), 200


@tags_bp.post("")
@require_auth
def create_tag():
    data = request.get_json(silent=True)
    tag = tag_service.create_tag(g.identity, data)
    return jsonify(tag.to_dict()), 201


@tags_bp.get("/<int:tag_id>")
@require_auth
def get_tag(tag_id: int):
    tag = tag_service.get_tag(g.identity, tag_id)
    return jsonify(tag.to_dict()), 200


@tags_bp.put("/<int:tag_id>")
@require_auth
def update_tag(tag_id: int):
    data = request.get_json(silent=True)
    tag = tag_service.update_tag(g.identity, tag_id, data)
    return jsonify(tag.to_dict()), 200


@tags_bp.delete("/<int:tag_id>")
@require_auth
def delete_tag(tag_id: int):
    deleted = tag_service.delete_tag(g.identity, tag_id)
    return jsonify({"message": "Tag deleted", "tag": deleted}), 200


@tags_bp.get("/<any(product, option, item):kind>/<int:target_id>")
@require_auth
def list_target_tags(kind: str, target_id: int):
    tags = tag_service.tags_for(g.identity, _KINDS[kind], target_id)
    return jsonify([tag.to_dict() for tag in tags]), 200


@tags_bp.post("/assign-<any(product, option, item):kind>/<int:target_id>/<int:tag_id>")
@require_auth
def assign_tag(kind: str, target_id: int, tag_id: int):
    """
    Idempotent: 201 when the assignment is new, 200 when it already existed.
    """
    created = tag_service.assign_tag(g.identity, _KINDS[kind], target_id, tag_id)
    if created:
        return jsonify({"message": "Tag assigned", "created": True}), 201
    return jsonify({"message": "Tag already assigned", "created": False}), 200


@tags_bp.delete("/assign-<any(product, option, item):kind>/<int:target_id>/<int:tag_id>")
@require_auth
def unassign_tag(kind: str, target_id: int, tag_id: int):
    tag_service.unassign_tag(g.identity, _KINDS[kind], target_id, tag_id)
    return jsonify({"message": "Tag removed"}), 200
