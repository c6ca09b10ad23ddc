"""
Multi-Tenant Service: Tenant Scoping Guard

WHY: Centralize the ownership rule instead of repeating role checks in every
route. Every mutation resolves the commerce that owns its target row and asks
authorize() whether the caller may touch it.

RULE:
1. SUPERUSER is always allowed (global override)
2. Otherwise allowed iff identity.commerce_id == target commerce and the
   target commerce is not null
3. Rows that are not directly tenant-tagged (options, items, assignments)
   resolve their commerce through item -> option -> product -> commerce

SECURITY: Denials are reported to clients as NotFound, never as 403, so a
caller cannot learn that a row exists under another tenant. Every denial is
logged with the caller and request path.

USAGE:
    from menuhub.services.tenant_service import load_product

    product = load_product(g.identity, product_id)  # raises NotFoundError
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from flask import current_app, has_request_context, request

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Category, Commerce, OptionItem, Product, ProductOption, Tag
from ..validation import require_int_range
from .token_service import Identity


class DenyReason(str, enum.Enum):
    NOT_OWNER = "NotOwner"
    NO_TENANT = "NoTenant"
    NOT_FOUND = "NotFound"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: DenyReason | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOWED = AccessDecision(allowed=True)


def authorize(identity: Identity, action: str, target_commerce_id: int | None) -> AccessDecision:
    """
    Decide whether identity may perform action on rows of target_commerce_id.

    action is informational (used for audit logging only); the rule is the
    same for every verb.
    """
    if identity.is_superuser:
        return ALLOWED

    if identity.commerce_id is None or target_commerce_id is None:
        decision = AccessDecision(allowed=False, reason=DenyReason.NO_TENANT)
    elif identity.commerce_id != target_commerce_id:
        decision = AccessDecision(allowed=False, reason=DenyReason.NOT_OWNER)
    else:
        return ALLOWED

    _log_denied(identity, action, target_commerce_id, decision.reason)
    return decision


def require_access(identity: Identity, action: str, target_commerce_id: int | None, *, label: str) -> None:
    """authorize() that raises NotFoundError on denial."""
    if not authorize(identity, action, target_commerce_id):
        raise NotFoundError(f"{label} not found")


def resolve_commerce_id(identity: Identity, requested: int | None) -> int:
    """
    Decide which commerce a new row is created under.

    OWNER: always their own commerce; a different requested commerce is
    treated as not found.
    SUPERUSER: must name the commerce explicitly.
    """
    if requested is not None:
        try:
            requested = int(requested)
        except (TypeError, ValueError):
            raise ValidationError("commerce_id must be an integer")
        require_int_range(requested, "commerce_id")

    if identity.is_superuser:
        if requested is None:
            raise ValidationError("commerce_id is required when acting as SUPERUSER")
        commerce = db.session.query(Commerce).filter_by(id=requested).first()
        if commerce is None:
            raise NotFoundError("Commerce not found")
        return commerce.id

    if identity.commerce_id is None:
        raise NotFoundError("Commerce not found")
    if requested is not None and requested != identity.commerce_id:
        _log_denied(identity, "create", requested, DenyReason.NOT_OWNER)
        raise NotFoundError("Commerce not found")
    return identity.commerce_id


def listing_commerce_id(identity: Identity, requested: int | None) -> int | None:
    """
    Commerce filter for list endpoints. None means "all commerces" and is only
    possible for SUPERUSER.
    """
    if identity.is_superuser:
        return requested
    return identity.commerce_id


# ---------------------------------------------------------------------------
# Scoped loaders: resolve the owning commerce, then apply the guard
# ---------------------------------------------------------------------------

def load_commerce(identity: Identity, commerce_id: int, action: str = "read") -> Commerce:
    commerce = db.session.query(Commerce).filter_by(id=commerce_id).first()
    if commerce is None:
        raise NotFoundError("Commerce not found")
    require_access(identity, action, commerce.id, label="Commerce")
    return commerce


def load_category(identity: Identity, category_id: int, action: str = "read") -> Category:
    category = db.session.query(Category).filter_by(id=category_id).first()
    if category is None:
        raise NotFoundError("Category not found")
    require_access(identity, action, category.commerce_id, label="Category")
    return category


def load_product(identity: Identity, product_id: int, action: str = "read") -> Product:
    product = db.session.query(Product).filter_by(id=product_id).first()
    if product is None:
        raise NotFoundError("Product not found")
    require_access(identity, action, product.commerce_id, label="Product")
    return product


def load_option(identity: Identity, option_id: int, action: str = "read") -> ProductOption:
    """Resolve option -> product -> commerce before applying the guard."""
    row = (
        db.session.query(ProductOption, Product.commerce_id)
        .join(Product, ProductOption.product_id == Product.id)
        .filter(ProductOption.id == option_id)
        .first()
    )
    if row is None:
        # Missing option or orphaned option (product gone)
        raise NotFoundError("Option not found")
    option, commerce_id = row
    require_access(identity, action, commerce_id, label="Option")
    return option


def load_item(identity: Identity, item_id: int, action: str = "read") -> OptionItem:
    """Resolve item -> option -> product -> commerce before applying the guard."""
    row = (
        db.session.query(OptionItem, Product.commerce_id)
        .join(ProductOption, OptionItem.option_id == ProductOption.id)
        .join(Product, ProductOption.product_id == Product.id)
        .filter(OptionItem.id == item_id)
        .first()
    )
    if row is None:
        raise NotFoundError("Item not found")
    item, commerce_id = row
    require_access(identity, action, commerce_id, label="Item")
    return item


def load_tag(identity: Identity, tag_id: int, action: str = "read") -> Tag:
    tag = db.session.query(Tag).filter_by(id=tag_id).first()
    if tag is None:
        raise NotFoundError("Tag not found")
    require_access(identity, action, tag.commerce_id, label="Tag")
    return tag


def _log_denied(
    identity: Identity,
    action: str,
    target_commerce_id: int | None,
    reason: DenyReason | None,
) -> None:
    """
    Log a cross-tenant access attempt.

    SECURITY: These should be monitored; repeated NotOwner denials from one
    user usually mean id probing.
    """
    path = request.path if has_request_context() else None
    current_app.logger.warning(
        "CROSS_TENANT_ACCESS_DENIED user_id=%s role=%s commerce_id=%s target_commerce_id=%s action=%s reason=%s path=%s",
        identity.user_id,
        identity.role.value,
        identity.commerce_id,
        target_commerce_id,
        action,
        reason.value if reason else None,
        path,
    )
