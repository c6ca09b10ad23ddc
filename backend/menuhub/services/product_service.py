# Overview: Service-layer operations for products; encapsulates business logic and database work.

"""
Product Service

MULTI-TENANT: a product's commerce is always its category's commerce. It is
derived on create and re-checked when the category changes, so a product can
never point at a category of another commerce.
"""

from __future__ import annotations

from ..errors import NotFoundError
from ..extensions import db
from ..models import OptionItem, Product, ProductOption
from ..validation import ModelValidationPolicy, enforce_rules_product, validate_payload
from . import media_service
from .catalog_store import transaction
from .tenant_service import listing_commerce_id, load_category, load_product
from .token_service import Identity

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "price", "category_id"},
    required_on_create={"name", "price", "category_id"},
    ignored_fields={"commerce_id"},
)

IMAGE_FOLDER = "products-images"


def list_products(
    identity: Identity,
    commerce_id: int | None = None,
    category_id: int | None = None,
) -> list[Product]:
    scope = listing_commerce_id(identity, commerce_id)
    query = db.session.query(Product)
    if scope is not None:
        query = query.filter(Product.commerce_id == scope)
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def get_product(identity: Identity, product_id: int) -> Product:
    return load_product(identity, product_id)


def create_product(identity: Identity, payload: dict) -> Product:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)

    category = load_category(identity, patch["category_id"], "create")

    with transaction():
        product = Product(commerce_id=category.commerce_id, **patch)
        db.session.add(product)
    return product


def update_product(identity: Identity, product_id: int, payload: dict) -> Product:
    product = load_product(identity, product_id, "update")
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)

    if "category_id" in patch and patch["category_id"] != product.category_id:
        category = load_category(identity, patch["category_id"], "update")
        if category.commerce_id != product.commerce_id:
            # SUPERUSER passes the guard; the row itself must stay in-tenant
            raise NotFoundError("Category not found")

    with transaction():
        for key, value in patch.items():
            setattr(product, key, value)
    return product


def _product_media_urls(product: Product) -> list[str]:
    urls = [product.image_url] if product.image_url else []
    item_urls = (
        db.session.query(OptionItem.image_url)
        .join(ProductOption, OptionItem.option_id == ProductOption.id)
        .filter(ProductOption.product_id == product.id, OptionItem.image_url.isnot(None))
        .all()
    )
    urls.extend(row[0] for row in item_urls)
    return urls


def delete_product(identity: Identity, product_id: int) -> dict:
    product = load_product(identity, product_id, "delete")
    snapshot = product.to_dict()
    media_urls = _product_media_urls(product)

    with transaction():
        db.session.delete(product)

    for url in media_urls:
        media_service.remove_quietly(url)
    return snapshot


def replace_product_image(identity: Identity, product_id: int, file_storage) -> Product:
    product = load_product(identity, product_id, "update")

    asset = media_service.upload_image(
        file_storage,
        folder=IMAGE_FOLDER,
        public_id=media_service.unique_public_id("product", product.id, product.name),
    )

    previous_url = product.image_url
    with transaction():
        product.image_url = asset.url

    if previous_url and previous_url != asset.url:
        media_service.remove_quietly(previous_url)
    return product
