# Overview: Service-layer operations for product options and their items.

"""
Product Option Service

Options are choice groups under a product; items are the choices.

SELECTION RULE: max_selections only applies when multiple is true. It is
stored as NULL whenever the resulting option is single-choice, whatever the
request said.

ITEM UPSERT: updating an option with an "items" list reconciles the stored
items against it in one transaction:
- entries with an id update that item (the id must belong to this option)
- entries without an id are inserted
- stored items not named in the list are deleted
"""

from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import OptionItem, ProductOption
from ..validation import (
    ExistingItem,
    ModelValidationPolicy,
    NewItem,
    enforce_rules_item,
    enforce_rules_option,
    parse_option_items,
    validate_payload,
)
from . import media_service
from .catalog_store import run_with_retry, transaction
from .tenant_service import load_item, load_option, load_product
from .token_service import Identity

OPTION_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "name", "required", "multiple", "max_selections"},
    required_on_create={"product_id", "name"},
    ignored_fields={"items"},
)

OPTION_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "required", "multiple", "max_selections"},
    ignored_fields={"items", "product_id"},
)

ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"name", "price_addition", "available", "image_url"},
    required_on_create={"name"},
    ignored_fields={"option_id"},
)


def apply_selection_rule(option: ProductOption) -> None:
    if not option.multiple:
        option.max_selections = None


def list_options(identity: Identity, product_id: int) -> list[ProductOption]:
    product = load_product(identity, product_id)
    return list(product.options)


def get_option(identity: Identity, option_id: int) -> ProductOption:
    return load_option(identity, option_id)


def create_option(identity: Identity, payload: dict) -> ProductOption:
    patch = validate_payload(model=ProductOption, payload=payload, policy=OPTION_CREATE_POLICY, partial=False)
    enforce_rules_option(patch)
    items = parse_option_items(payload.get("items"), policy=ITEM_POLICY, model=OptionItem)
    if any(isinstance(entry, ExistingItem) for entry in items):
        raise ValidationError("New options cannot reference existing items")

    product = load_product(identity, patch["product_id"], "create")

    with transaction():
        option = ProductOption(**patch)
        option.product = product
        apply_selection_rule(option)
        for entry in items:
            option.items.append(OptionItem(**entry.fields))
        db.session.add(option)
    return option


def reconcile_items(option: ProductOption, entries: list[ExistingItem | NewItem]) -> list[str]:
    """
    Make option.items match entries. Returns image URLs of removed items so
    the caller can clean them up after commit.

    Must be called inside a transaction.
    """
    stored = {item.id: item for item in option.items}

    for entry in entries:
        if isinstance(entry, ExistingItem) and entry.id not in stored:
            raise NotFoundError(f"Item {entry.id} not found in this option")

    kept_ids = {entry.id for entry in entries if isinstance(entry, ExistingItem)}
    removed_urls = []
    for item_id, item in stored.items():
        if item_id not in kept_ids:
            if item.image_url:
                removed_urls.append(item.image_url)
            option.items.remove(item)  # delete-orphan

    for entry in entries:
        if isinstance(entry, ExistingItem):
            item = stored[entry.id]
            for key, value in entry.fields.items():
                setattr(item, key, value)
        else:
            option.items.append(OptionItem(**entry.fields))
    return removed_urls


def update_option(identity: Identity, option_id: int, payload: dict) -> ProductOption:
    option = load_option(identity, option_id, "update")
    patch = validate_payload(model=ProductOption, payload=payload, policy=OPTION_UPDATE_POLICY, partial=True)
    enforce_rules_option(patch)

    replace_items = isinstance(payload, dict) and "items" in payload
    entries = parse_option_items(payload["items"], policy=ITEM_POLICY, model=OptionItem) if replace_items else []

    def _apply():
        with transaction():
            for key, value in patch.items():
                setattr(option, key, value)
            apply_selection_rule(option)
            removed = reconcile_items(option, entries) if replace_items else []
        return removed

    removed_urls = run_with_retry(_apply)
    for url in removed_urls:
        media_service.remove_quietly(url)
    return option


def delete_option(identity: Identity, option_id: int) -> dict:
    option = load_option(identity, option_id, "delete")
    snapshot = option.to_dict()
    media_urls = [item.image_url for item in option.items if item.image_url]

    with transaction():
        db.session.delete(option)

    for url in media_urls:
        media_service.remove_quietly(url)
    return snapshot


def add_item(identity: Identity, option_id: int, payload: dict) -> OptionItem:
    option = load_option(identity, option_id, "update")
    patch = validate_payload(model=OptionItem, payload=payload, policy=ITEM_POLICY, partial=False)
    enforce_rules_item(patch)

    with transaction():
        item = OptionItem(**patch)
        option.items.append(item)
    return item


def update_item(identity: Identity, item_id: int, payload: dict) -> OptionItem:
    item = load_item(identity, item_id, "update")
    patch = validate_payload(model=OptionItem, payload=payload, policy=ITEM_POLICY, partial=True)
    enforce_rules_item(patch)

    previous_url = item.image_url
    with transaction():
        for key, value in patch.items():
            setattr(item, key, value)

    if "image_url" in patch and previous_url and previous_url != item.image_url:
        media_service.remove_quietly(previous_url)
    return item


def delete_item(identity: Identity, item_id: int) -> dict:
    item = load_item(identity, item_id, "delete")
    snapshot = item.to_dict()
    image_url = item.image_url

    with transaction():
        db.session.delete(item)

    if image_url:
        media_service.remove_quietly(image_url)
    return snapshot
