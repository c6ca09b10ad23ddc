# Overview: Service-layer operations for categories; encapsulates business logic and database work.

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..errors import ForbiddenError, NotFoundError
from ..extensions import db
from ..models import Category, OptionItem, Product, ProductOption
from ..validation import ModelValidationPolicy, PositionUpdate, validate_payload
from . import media_service
from .catalog_store import lock_category_rows, run_with_retry, transaction
from .tenant_service import listing_commerce_id, load_category, resolve_commerce_id
from .token_service import Identity

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "position"},
    required_on_create={"name"},
    ignored_fields={"commerce_id"},
)


def _ordered(query):
    return query.order_by(Category.position.asc(), Category.id.asc())


def list_categories(identity: Identity, commerce_id: int | None = None) -> list[Category]:
    scope = listing_commerce_id(identity, commerce_id)
    query = db.session.query(Category)
    if scope is not None:
        query = query.filter(Category.commerce_id == scope)
    return _ordered(query).all()


def get_category(identity: Identity, category_id: int) -> Category:
    return load_category(identity, category_id)


def next_position(commerce_id: int) -> int:
    """One past the highest position in the commerce; 0 for the first category."""
    current_max = (
        db.session.query(func.max(Category.position))
        .filter(Category.commerce_id == commerce_id)
        .scalar()
    )
    return 0 if current_max is None else current_max + 1


def create_category(identity: Identity, payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    commerce_id = resolve_commerce_id(identity, (payload or {}).get("commerce_id"))

    if patch.get("position") is None:
        patch["position"] = next_position(commerce_id)

    with transaction():
        category = Category(commerce_id=commerce_id, **patch)
        db.session.add(category)
    return category


def update_category(identity: Identity, category_id: int, payload: dict) -> Category:
    category = load_category(identity, category_id, "update")
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)

    with transaction():
        for key, value in patch.items():
            setattr(category, key, value)
    return category


def _category_media_urls(category_id: int) -> list[str]:
    product_urls = (
        db.session.query(Product.image_url)
        .filter(Product.category_id == category_id, Product.image_url.isnot(None))
        .all()
    )
    item_urls = (
        db.session.query(OptionItem.image_url)
        .join(ProductOption, OptionItem.option_id == ProductOption.id)
        .join(Product, ProductOption.product_id == Product.id)
        .filter(Product.category_id == category_id, OptionItem.image_url.isnot(None))
        .all()
    )
    return [row[0] for row in product_urls + item_urls]


def delete_category(identity: Identity, category_id: int) -> dict:
    """
    Delete a category and, through ORM cascades, its products with their
    options, items and tag assignments. Product images are removed after the
    commit on a best-effort basis.
    """
    category = load_category(identity, category_id, "delete")
    snapshot = category.to_dict()
    media_urls = _category_media_urls(category.id)

    with transaction():
        db.session.delete(category)

    for url in media_urls:
        media_service.remove_quietly(url)
    return snapshot


def reorder_categories(identity: Identity, updates: list[PositionUpdate]) -> list[Category]:
    """
    Apply a batch of position updates atomically.

    Ownership of every id is checked with one query before any write. An
    OWNER batch containing a category of another commerce (or an unknown id)
    is rejected as a whole with ForbiddenError carrying found/expected counts.
    """
    ids = [u.category_id for u in updates]
    if not ids:
        return list_categories(identity)

    ownership = db.session.query(func.count(Category.id)).filter(Category.id.in_(ids))
    if not identity.is_superuser:
        ownership = ownership.filter(Category.commerce_id == identity.commerce_id)
    found = ownership.scalar() or 0

    if found != len(ids):
        if not identity.is_superuser:
            current_app.logger.warning(
                "CROSS_TENANT_REORDER_DENIED user_id=%s commerce_id=%s found=%s expected=%s",
                identity.user_id, identity.commerce_id, found, len(ids),
            )
            raise ForbiddenError(
                "Some categories do not belong to your commerce", found=found, expected=len(ids)
            )
        raise NotFoundError("Category not found")

    positions = {u.category_id: u.position for u in updates}

    def _apply():
        with transaction():
            rows = lock_category_rows(ids)
            for category in rows:
                category.position = positions[category.id]
        return rows

    rows = run_with_retry(_apply)

    commerce_ids = {c.commerce_id for c in rows}
    return _ordered(db.session.query(Category).filter(Category.commerce_id.in_(commerce_ids))).all()
