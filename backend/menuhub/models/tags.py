from __future__ import annotations

import enum

from ..extensions import db
from menuhub.time_utils import to_utc_z
from .catalog import money


class TagType(str, enum.Enum):
    """Which entity kind a tag may be attached to."""
    PRODUCT = "product"
    OPTION = "option"
    ITEM = "item"


# Assignment join tables. A tag is only ever linked through the table that
# matches its type; tag_service enforces this before inserting.
product_tags = db.Table(
    "product_tags",
    db.Column("product_id", db.Integer, db.ForeignKey("products.id"), primary_key=True),
    db.Column("tag_id", db.Integer, db.ForeignKey("tags.id"), primary_key=True),
    db.Column("created_at", db.DateTime(timezone=True), nullable=False, server_default=db.func.now()),
)

option_tags = db.Table(
    "option_tags",
    db.Column("option_id", db.Integer, db.ForeignKey("product_options.id"), primary_key=True),
    db.Column("tag_id", db.Integer, db.ForeignKey("tags.id"), primary_key=True),
    db.Column("created_at", db.DateTime(timezone=True), nullable=False, server_default=db.func.now()),
)

item_tags = db.Table(
    "item_tags",
    db.Column("item_id", db.Integer, db.ForeignKey("option_items.id"), primary_key=True),
    db.Column("tag_id", db.Integer, db.ForeignKey("tags.id"), primary_key=True),
    db.Column("created_at", db.DateTime(timezone=True), nullable=False, server_default=db.func.now()),
)


class Tag(db.Model):
    """
    Visual label for products, options or items ("Vegan", "2x1", "Sold out").

    MULTI-TENANT: tags belong to one commerce and may only be assigned to
    entities of the same commerce.

    Only visible tags are rendered on the public menu, ordered by
    priority (desc) then name.
    """
    __tablename__ = "tags"
    __table_args__ = (
        db.Index("ix_tags_commerce_type", "commerce_id", "type"),
    )

    id = db.Column(db.Integer, primary_key=True)
    commerce_id = db.Column(db.Integer, db.ForeignKey("commerces.id"), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    color = db.Column(db.String(32), nullable=False)
    text_color = db.Column(db.String(32), nullable=False, default="#FFFFFF")
    type = db.Column(
        db.Enum(
            TagType,
            name="tag_type",
            native_enum=False,
            length=16,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
    )
    visible = db.Column(db.Boolean, nullable=False, default=True)
    priority = db.Column(db.Integer, nullable=False, default=0)
    discount = db.Column(db.Numeric(10, 2), nullable=True)
    disable_selection = db.Column(db.Boolean, nullable=False, default=False)
    is_recommended = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    commerce = db.relationship("Commerce", back_populates="tags")
    products = db.relationship("Product", secondary=product_tags, back_populates="tags", lazy=True)
    options = db.relationship("ProductOption", secondary=option_tags, back_populates="tags", lazy=True)
    items = db.relationship("OptionItem", secondary=item_tags, back_populates="tags", lazy=True)

    def __repr__(self) -> str:
        return f"<Tag id={self.id} name={self.name!r} type={self.type.value}>"

    def to_public_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "text_color": self.text_color,
            "type": self.type.value,
            "priority": self.priority,
            "discount": money(self.discount),
            "disable_selection": self.disable_selection,
            "is_recommended": self.is_recommended,
        }

    def to_dict(self) -> dict:
        data = self.to_public_dict()
        data.update({
            "commerce_id": self.commerce_id,
            "visible": self.visible,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        })
        return data
