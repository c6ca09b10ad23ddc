# Overview: Service-layer operations for commerces (tenants); encapsulates business logic and database work.

"""
Commerce Service

MULTI-TENANT: A commerce is the tenant root. Creating one always provisions
its OWNER user in the same transaction; deleting one removes its users first,
then the commerce and (through ORM cascades) its whole catalog, then
best-effort removes its media after the commit.

SECURITY:
- Listing, creating and deleting commerces is SUPERUSER only
- OWNER users may read and update their own commerce, except the subdomain
"""

from __future__ import annotations

from flask import current_app

from ..errors import AlreadyExistsError, ForbiddenError, ValidationError
from ..extensions import db
from ..models import Commerce, OptionItem, Product, ProductOption, Role, User
from ..validation import ModelValidationPolicy, enforce_rules_commerce, validate_payload
from . import media_service
from .auth_service import build_user
from .catalog_store import transaction
from .tenant_service import load_commerce
from .token_service import Identity

_PROFILE_FIELDS = {
    "business_name", "business_category", "address", "phone", "owner_name",
    "is_open", "accepts_delivery", "accepts_pickup", "delivery_fee", "delivery_time",
    "min_order_value", "contact_phone", "contact_email",
    "social_instagram", "social_facebook", "social_whatsapp",
}

COMMERCE_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=_PROFILE_FIELDS | {"subdomain"},
    required_on_create={"business_name", "subdomain", "business_category"},
    ignored_fields={"owner"},
)

SUPERUSER_UPDATE_POLICY = ModelValidationPolicy(writable_fields=_PROFILE_FIELDS | {"subdomain"})
OWNER_UPDATE_POLICY = ModelValidationPolicy(writable_fields=_PROFILE_FIELDS)

LOGO_FOLDER = "commerces-logos"
BANNER_FOLDER = "commerces-banners"


def _require_superuser(identity: Identity, message: str) -> None:
    if not identity.is_superuser:
        raise ForbiddenError(message)


def _subdomain_taken(subdomain: str, *, exclude_id: int | None = None) -> bool:
    query = db.session.query(Commerce.id).filter(Commerce.subdomain == subdomain)
    if exclude_id is not None:
        query = query.filter(Commerce.id != exclude_id)
    return query.first() is not None


def list_commerces(identity: Identity) -> list[Commerce]:
    _require_superuser(identity, "Only superusers can list commerces")
    return (
        db.session.query(Commerce)
        .order_by(Commerce.created_at.desc(), Commerce.id.desc())
        .all()
    )


def get_commerce(identity: Identity, commerce_id: int) -> Commerce:
    return load_commerce(identity, commerce_id)


def create_commerce(identity: Identity, payload: dict) -> tuple[Commerce, User]:
    """
    Create a commerce together with its OWNER user.

    Payload:
        {"business_name": ..., "subdomain": ..., "business_category": ...,
         ..., "owner": {"email": ..., "password": ..., "first_name": ...}}

    Both rows are written in one transaction; a duplicate subdomain or owner
    email raises AlreadyExistsError and leaves nothing behind.
    """
    _require_superuser(identity, "Only superusers can create commerces")

    patch = validate_payload(model=Commerce, payload=payload, policy=COMMERCE_CREATE_POLICY, partial=False)
    enforce_rules_commerce(patch)

    owner_payload = payload.get("owner")
    if not isinstance(owner_payload, dict):
        raise ValidationError("owner with email and password is required")

    if _subdomain_taken(patch["subdomain"]):
        raise AlreadyExistsError("subdomain", "Subdomain is already in use")

    with transaction():
        commerce = Commerce(**patch)
        db.session.add(commerce)
        db.session.flush()  # commerce.id needed for the owner row

        owner = build_user(
            email=owner_payload.get("email"),
            password=owner_payload.get("password"),
            role=Role.OWNER,
            commerce_id=commerce.id,
            profile=owner_payload,
        )
        if not commerce.owner_name:
            full_name = " ".join(p for p in (owner.first_name, owner.last_name) if p)
            commerce.owner_name = full_name or None
        db.session.add(owner)

    current_app.logger.info(
        "COMMERCE_CREATED commerce_id=%s subdomain=%s owner_id=%s by=%s",
        commerce.id, commerce.subdomain, owner.id, identity.user_id,
    )
    return commerce, owner


def update_commerce(identity: Identity, commerce_id: int, payload: dict) -> Commerce:
    commerce = load_commerce(identity, commerce_id, "update")

    policy = SUPERUSER_UPDATE_POLICY if identity.is_superuser else OWNER_UPDATE_POLICY
    patch = validate_payload(model=Commerce, payload=payload, policy=policy, partial=True)
    enforce_rules_commerce(patch)

    if "subdomain" in patch and _subdomain_taken(patch["subdomain"], exclude_id=commerce.id):
        raise AlreadyExistsError("subdomain", "Subdomain is already in use")

    with transaction():
        for key, value in patch.items():
            setattr(commerce, key, value)
    return commerce


def _catalog_media_urls(commerce_id: int) -> list[str]:
    """Every media URL owned by a commerce (product and item images)."""
    product_urls = (
        db.session.query(Product.image_url)
        .filter(Product.commerce_id == commerce_id, Product.image_url.isnot(None))
        .all()
    )
    item_urls = (
        db.session.query(OptionItem.image_url)
        .join(ProductOption, OptionItem.option_id == ProductOption.id)
        .join(Product, ProductOption.product_id == Product.id)
        .filter(Product.commerce_id == commerce_id, OptionItem.image_url.isnot(None))
        .all()
    )
    return [row[0] for row in product_urls + item_urls]


def delete_commerce(identity: Identity, commerce_id: int) -> dict:
    """
    Delete a commerce.

    Order: users, then the commerce row (cascading to categories, products,
    options, items, tags and assignments), all in one transaction. Media
    cleanup runs after the commit and never fails the request.
    """
    _require_superuser(identity, "Only superusers can delete commerces")
    commerce = load_commerce(identity, commerce_id, "delete")

    media_urls = [url for url in (commerce.logo_url, commerce.banner_url) if url]
    media_urls.extend(_catalog_media_urls(commerce.id))

    with transaction():
        users_deleted = (
            db.session.query(User)
            .filter(User.commerce_id == commerce.id)
            .delete(synchronize_session="fetch")
        )
        db.session.delete(commerce)

    media_removed = sum(1 for url in media_urls if media_service.remove_quietly(url))

    current_app.logger.info(
        "COMMERCE_DELETED commerce_id=%s users_deleted=%s media_removed=%s/%s by=%s",
        commerce_id, users_deleted, media_removed, len(media_urls), identity.user_id,
    )
    return {"id": commerce_id, "users_deleted": users_deleted, "media_removed": media_removed}


def replace_branding_image(identity: Identity, commerce_id: int, kind: str, file_storage) -> Commerce:
    """
    Upload a new logo or banner and store its URL.

    The upload is authoritative (a failure aborts the request); removing the
    previous image afterwards is best-effort.
    """
    if kind not in ("logo", "banner"):
        raise ValidationError("kind must be logo or banner")

    commerce = load_commerce(identity, commerce_id, "update")
    folder = LOGO_FOLDER if kind == "logo" else BANNER_FOLDER
    column = f"{kind}_url"

    asset = media_service.upload_image(
        file_storage,
        folder=folder,
        public_id=media_service.unique_public_id("commerce", commerce.id),
    )

    previous_url = getattr(commerce, column)
    with transaction():
        setattr(commerce, column, asset.url)

    if previous_url and previous_url != asset.url:
        media_service.remove_quietly(previous_url)
    return commerce
