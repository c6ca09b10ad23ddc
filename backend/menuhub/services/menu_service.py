# Overview: Public menu composition by subdomain; read-only.

"""
Menu Composer

Builds the public menu document for one commerce:

    {"tenant": {...}, "categories": [{..., "products": [{..., "tags": [...],
        "options": [{..., "tags": [...], "items": [{..., "tags": [...]}]}]}]}]}

Ordering:
- categories by (position, id)
- products by (name, id)
- options and items by id
- tags by (priority desc, name)

Only visible tags and available items appear. Every level is loaded with one
query per table (no per-row lookups), so the cost does not grow with the
number of products.
"""

from __future__ import annotations

from collections import defaultdict

from ..errors import NotFoundError
from ..extensions import db
from ..models import (
    Category,
    Commerce,
    OptionItem,
    Product,
    ProductOption,
    Tag,
    item_tags,
    option_tags,
    product_tags,
)
from ..models.catalog import money


def _visible_tags_by_target(link_table, target_column, target_ids) -> dict[int, list[dict]]:
    if not target_ids:
        return {}
    rows = (
        db.session.query(link_table.c[target_column], Tag)
        .join(Tag, Tag.id == link_table.c.tag_id)
        .filter(link_table.c[target_column].in_(target_ids), Tag.visible.is_(True))
        .order_by(Tag.priority.desc(), Tag.name.asc())
        .all()
    )
    grouped: dict[int, list[dict]] = defaultdict(list)
    for target_id, tag in rows:
        grouped[target_id].append(tag.to_public_dict())
    return grouped


def find_commerce(subdomain: str) -> Commerce | None:
    if not subdomain:
        return None
    return (
        db.session.query(Commerce)
        .filter(Commerce.subdomain == subdomain.strip().lower())
        .first()
    )


def compose_menu(subdomain: str) -> dict:
    commerce = find_commerce(subdomain)
    if commerce is None:
        raise NotFoundError("Commerce not found")

    categories = (
        db.session.query(Category)
        .filter(Category.commerce_id == commerce.id)
        .order_by(Category.position.asc(), Category.id.asc())
        .all()
    )
    products = (
        db.session.query(Product)
        .filter(Product.commerce_id == commerce.id)
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )
    product_ids = [p.id for p in products]

    options = []
    if product_ids:
        options = (
            db.session.query(ProductOption)
            .filter(ProductOption.product_id.in_(product_ids))
            .order_by(ProductOption.id.asc())
            .all()
        )
    option_ids = [o.id for o in options]

    items = []
    if option_ids:
        items = (
            db.session.query(OptionItem)
            .filter(OptionItem.option_id.in_(option_ids), OptionItem.available.is_(True))
            .order_by(OptionItem.id.asc())
            .all()
        )
    item_ids = [i.id for i in items]

    product_tag_map = _visible_tags_by_target(product_tags, "product_id", product_ids)
    option_tag_map = _visible_tags_by_target(option_tags, "option_id", option_ids)
    item_tag_map = _visible_tags_by_target(item_tags, "item_id", item_ids)

    items_by_option: dict[int, list[dict]] = defaultdict(list)
    for item in items:
        items_by_option[item.option_id].append({
            "id": item.id,
            "name": item.name,
            "price_addition": money(item.price_addition),
            "available": item.available,
            "image_url": item.image_url,
            "tags": item_tag_map.get(item.id, []),
        })

    options_by_product: dict[int, list[dict]] = defaultdict(list)
    for option in options:
        options_by_product[option.product_id].append({
            "id": option.id,
            "name": option.name,
            "required": option.required,
            "multiple": option.multiple,
            "max_selections": option.max_selections if option.multiple else None,
            "tags": option_tag_map.get(option.id, []),
            "items": items_by_option.get(option.id, []),
        })

    products_by_category: dict[int, list[dict]] = defaultdict(list)
    for product in products:
        products_by_category[product.category_id].append({
            "id": product.id,
            "name": product.name,
            "description": product.description or "",
            "price": money(product.price),
            "image_url": product.image_url,
            "tags": product_tag_map.get(product.id, []),
            "options": options_by_product.get(product.id, []),
        })

    return {
        "tenant": commerce.to_public_dict(),
        "categories": [
            {
                "id": category.id,
                "name": category.name,
                "position": category.position,
                "products": products_by_category.get(category.id, []),
            }
            for category in categories
        ],
    }
