from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from menuhub.time_utils import to_utc_z


def money(value: Decimal | None) -> str | None:
    """Serialize a Numeric column as a fixed two-decimal string."""
    if value is None:
        return None
    return f"{Decimal(value):.2f}"


class Category(db.Model):
    """
    Menu section within a commerce.

    position is an ordering hint, not a unique key; readers order by
    (position, id) so ties are stable.
    """
    __tablename__ = "categories"
    __table_args__ = (
        db.Index("ix_categories_commerce_position", "commerce_id", "position"),
    )

    id = db.Column(db.Integer, primary_key=True)
    commerce_id = db.Column(db.Integer, db.ForeignKey("commerces.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    commerce = db.relationship("Commerce", back_populates="categories")
    products = db.relationship("Product", back_populates="category", cascade="all, delete-orphan", lazy=True)

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r} commerce_id={self.commerce_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "commerce_id": self.commerce_id,
            "name": self.name,
            "position": self.position,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Menu product.

    MULTI-TENANT: commerce_id is denormalized next to category_id so scoping
    checks need no join. The category must belong to the same commerce.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        db.Index("ix_products_commerce_category", "commerce_id", "category_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    commerce_id = db.Column(db.Integer, db.ForeignKey("commerces.id"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True, default="")
    price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    image_url = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    commerce = db.relationship("Commerce", back_populates="products")
    category = db.relationship("Category", back_populates="products")
    options = db.relationship(
        "ProductOption",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductOption.id",
        lazy=True,
    )
    tags = db.relationship("Tag", secondary="product_tags", back_populates="products", lazy=True)

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} commerce_id={self.commerce_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "commerce_id": self.commerce_id,
            "category_id": self.category_id,
            "name": self.name,
            "description": self.description or "",
            "price": money(self.price),
            "image_url": self.image_url,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductOption(db.Model):
    """
    Choice group attached to a product (e.g. "Size", "Extras").

    max_selections is meaningful only when multiple is true and is stored as
    NULL otherwise; option_service enforces this on every write.
    """
    __tablename__ = "product_options"

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    required = db.Column(db.Boolean, nullable=False, default=False)
    multiple = db.Column(db.Boolean, nullable=False, default=False)
    max_selections = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    product = db.relationship("Product", back_populates="options")
    items = db.relationship(
        "OptionItem",
        back_populates="option",
        cascade="all, delete-orphan",
        order_by="OptionItem.id",
        lazy=True,
    )
    tags = db.relationship("Tag", secondary="option_tags", back_populates="options", lazy=True)

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "product_id": self.product_id,
            "name": self.name,
            "required": self.required,
            "multiple": self.multiple,
            "max_selections": self.max_selections,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OptionItem(db.Model):
    __tablename__ = "option_items"

    id = db.Column(db.Integer, primary_key=True)
    option_id = db.Column(db.Integer, db.ForeignKey("product_options.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    # May be negative (discounted variant), zero or positive
    price_addition = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    available = db.Column(db.Boolean, nullable=False, default=True)
    image_url = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    option = db.relationship("ProductOption", back_populates="items")
    tags = db.relationship("Tag", secondary="item_tags", back_populates="items", lazy=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "option_id": self.option_id,
            "name": self.name,
            "price_addition": money(self.price_addition),
            "available": self.available,
            "image_url": self.image_url,
        }
