# Overview: Service-layer operations for tags and tag assignments.

"""
Tag Service

Tags are per-commerce labels with a fixed type (product, option or item).
A tag can only be assigned to an entity of its own type and of its own
commerce. Assigning an already assigned tag is a no-op.

Accepts the camelCase field names the admin frontend sends (textColor,
disableSelection, isRecommended) as aliases of the stored snake_case names.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Tag, TagType
from ..validation import ModelValidationPolicy, enforce_rules_tag, validate_payload
from .catalog_store import transaction
from .tenant_service import listing_commerce_id, load_item, load_option, load_product, load_tag, resolve_commerce_id
from .token_service import Identity

TAG_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "color", "text_color", "type", "visible", "priority",
        "discount", "disable_selection", "is_recommended",
    },
    required_on_create={"name", "color", "type"},
    ignored_fields={"commerce_id"},
)

TAG_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=TAG_CREATE_POLICY.writable_fields,
    ignored_fields={"commerce_id"},
)

FIELD_ALIASES = {
    "textColor": "text_color",
    "disableSelection": "disable_selection",
    "isRecommended": "is_recommended",
}


def normalize_aliases(payload):
    if not isinstance(payload, dict):
        return payload
    normalized = {}
    for key, value in payload.items():
        normalized[FIELD_ALIASES.get(key, key)] = value
    return normalized


def _parse_type(raw) -> TagType:
    try:
        return TagType(str(raw).strip().lower())
    except ValueError:
        raise ValidationError("type must be one of: product, option, item")


def list_tags(identity: Identity, commerce_id: int | None = None, tag_type: str | None = None) -> list[Tag]:
    scope = listing_commerce_id(identity, commerce_id)
    query = db.session.query(Tag)
    if scope is not None:
        query = query.filter(Tag.commerce_id == scope)
    if tag_type:
        query = query.filter(Tag.type == _parse_type(tag_type))
    return query.order_by(Tag.type.asc(), Tag.priority.desc(), Tag.name.asc()).all()


def get_tag(identity: Identity, tag_id: int) -> Tag:
    return load_tag(identity, tag_id)


def create_tag(identity: Identity, payload: dict) -> Tag:
    payload = normalize_aliases(payload)
    patch = validate_payload(model=Tag, payload=payload, policy=TAG_CREATE_POLICY, partial=False)
    enforce_rules_tag(patch)
    commerce_id = resolve_commerce_id(identity, payload.get("commerce_id"))

    with transaction():
        tag = Tag(commerce_id=commerce_id, **patch)
        db.session.add(tag)
    return tag


def _has_assignments(tag: Tag) -> bool:
    return bool(tag.products or tag.options or tag.items)


def update_tag(identity: Identity, tag_id: int, payload: dict) -> Tag:
    tag = load_tag(identity, tag_id, "update")
    payload = normalize_aliases(payload)
    patch = validate_payload(model=Tag, payload=payload, policy=TAG_UPDATE_POLICY, partial=True)
    enforce_rules_tag(patch)

    if "type" in patch and patch["type"] is not tag.type and _has_assignments(tag):
        raise ValidationError("Cannot change the type of a tag that is assigned; remove its assignments first")

    with transaction():
        for key, value in patch.items():
            setattr(tag, key, value)
    return tag


def delete_tag(identity: Identity, tag_id: int) -> dict:
    """Delete a tag; its assignment rows go with it."""
    tag = load_tag(identity, tag_id, "delete")
    snapshot = tag.to_dict()

    with transaction():
        tag.products.clear()
        tag.options.clear()
        tag.items.clear()
        db.session.delete(tag)
    return snapshot


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------

def _load_target(identity: Identity, kind: TagType, target_id: int, action: str):
    """Returns (target, owning commerce id)."""
    if kind is TagType.PRODUCT:
        product = load_product(identity, target_id, action)
        return product, product.commerce_id
    if kind is TagType.OPTION:
        option = load_option(identity, target_id, action)
        return option, option.product.commerce_id
    item = load_item(identity, target_id, action)
    return item, item.option.product.commerce_id


def assign_tag(identity: Identity, kind: TagType | str, target_id: int, tag_id: int) -> bool:
    """
    Attach tag_id to a product, option or item.

    Returns True when a new assignment was created, False when it already
    existed.
    """
    kind = kind if isinstance(kind, TagType) else _parse_type(kind)
    target, target_commerce_id = _load_target(identity, kind, target_id, "update")
    tag = load_tag(identity, tag_id, "update")

    if tag.commerce_id != target_commerce_id:
        # SUPERUSER passes the guard but may not link rows across commerces
        raise NotFoundError("Tag not found")
    if tag.type is not kind:
        raise ValidationError(f"Tag of type {tag.type.value} cannot be assigned to a {kind.value}")

    if tag in target.tags:
        return False

    try:
        with transaction():
            target.tags.append(tag)
    except IntegrityError:
        # a concurrent request inserted the same link first
        return False
    return True


def unassign_tag(identity: Identity, kind: TagType | str, target_id: int, tag_id: int) -> None:
    kind = kind if isinstance(kind, TagType) else _parse_type(kind)
    target, _ = _load_target(identity, kind, target_id, "update")

    tag = next((t for t in target.tags if t.id == tag_id), None)
    if tag is None:
        raise NotFoundError("Tag assignment not found")

    with transaction():
        target.tags.remove(tag)


def tags_for(identity: Identity, kind: TagType | str, target_id: int) -> list[Tag]:
    """All tags on a target (hidden ones included), priority desc then name."""
    kind = kind if isinstance(kind, TagType) else _parse_type(kind)
    target, _ = _load_target(identity, kind, target_id, "read")
    return sorted(target.tags, key=lambda t: (-t.priority, t.name))
