from __future__ import annotations

import enum

from ..extensions import db
from menuhub.time_utils import to_utc_z


class Role(str, enum.Enum):
    """
    Closed set of principal roles.

    SUPERUSER is global and bypasses tenant scoping.
    OWNER is scoped to exactly one commerce.
    """
    SUPERUSER = "SUPERUSER"
    OWNER = "OWNER"


class User(db.Model):
    """
    Principal accounts.

    MULTI-TENANT: OWNER users reference exactly one commerce; commerce_id is
    null only for SUPERUSER accounts. Email is globally unique because login
    is by email alone.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_users_email"),
        db.Index("ix_users_commerce_id", "commerce_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.Enum(Role, name="user_role", native_enum=False, length=16), nullable=False, default=Role.OWNER)
    commerce_id = db.Column(db.Integer, db.ForeignKey("commerces.id"), nullable=True)

    first_name = db.Column(db.String(120), nullable=True)
    last_name = db.Column(db.String(120), nullable=True)
    phone = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    commerce = db.relationship("Commerce", backref=db.backref("users", lazy=True))

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role.value}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role.value,
            "commerce_id": self.commerce_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
