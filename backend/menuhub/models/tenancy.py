from __future__ import annotations

from ..extensions import db
from menuhub.time_utils import to_utc_z
from .catalog import money


class Commerce(db.Model):
    """
    Multi-tenant root: every onboarded business is a Commerce.

    MULTI-TENANT: categories, products, tags and OWNER users belong to exactly
    one commerce (commerce_id FK). Options, items and tag assignments belong
    to a commerce transitively through their product.

    The subdomain is the public slug used by the menu endpoint and is
    globally unique.
    """
    __tablename__ = "commerces"
    __table_args__ = (
        db.UniqueConstraint("subdomain", name="uq_commerces_subdomain"),
    )

    id = db.Column(db.Integer, primary_key=True)
    business_name = db.Column(db.String(255), nullable=False)
    subdomain = db.Column(db.String(63), nullable=False, index=True)
    business_category = db.Column(db.String(120), nullable=True)

    # Branding (media host URLs)
    logo_url = db.Column(db.String(512), nullable=True)
    banner_url = db.Column(db.String(512), nullable=True)

    # Operational flags
    is_open = db.Column(db.Boolean, nullable=False, default=True)
    accepts_delivery = db.Column(db.Boolean, nullable=False, default=False)
    accepts_pickup = db.Column(db.Boolean, nullable=False, default=True)
    delivery_fee = db.Column(db.Numeric(10, 2), nullable=True)
    delivery_time = db.Column(db.String(64), nullable=True)
    min_order_value = db.Column(db.Numeric(10, 2), nullable=True)

    # Contact / social
    address = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    owner_name = db.Column(db.String(255), nullable=True)
    contact_phone = db.Column(db.String(32), nullable=True)
    contact_email = db.Column(db.String(255), nullable=True)
    social_instagram = db.Column(db.String(255), nullable=True)
    social_facebook = db.Column(db.String(255), nullable=True)
    social_whatsapp = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    categories = db.relationship(
        "Category", back_populates="commerce", cascade="all, delete-orphan", lazy=True
    )
    products = db.relationship(
        "Product", back_populates="commerce", cascade="all, delete-orphan", lazy=True
    )
    tags = db.relationship(
        "Tag", back_populates="commerce", cascade="all, delete-orphan", lazy=True
    )

    def __repr__(self) -> str:
        return f"<Commerce id={self.id} subdomain={self.subdomain!r}>"

    def to_public_dict(self) -> dict:
        """Fields exposed on the unauthenticated menu endpoint."""
        return {
            "id": self.id,
            "business_name": self.business_name,
            "business_category": self.business_category,
            "subdomain": self.subdomain,
            "logo_url": self.logo_url,
            "banner_url": self.banner_url,
            "is_open": self.is_open,
            "delivery_time": self.delivery_time,
            "delivery_fee": money(self.delivery_fee),
            "min_order_value": money(self.min_order_value),
            "accepts_delivery": self.accepts_delivery,
            "accepts_pickup": self.accepts_pickup,
            "contact_phone": self.contact_phone,
            "contact_email": self.contact_email,
            "social_instagram": self.social_instagram,
            "social_facebook": self.social_facebook,
            "social_whatsapp": self.social_whatsapp,
        }

    def to_dict(self) -> dict:
        data = self.to_public_dict()
        data.update({
            "address": self.address,
            "phone": self.phone,
            "owner_name": self.owner_name,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        })
        return data
