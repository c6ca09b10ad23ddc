"""Initial catalog schema: commerces, users, categories, products, options, items, tags

Revision ID: 0001_initial_catalog
Revises:
Create Date: 2026-10-16
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial_catalog"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
    ]


def upgrade():
    op.create_table(
        "commerces",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("business_name", sa.String(255), nullable=False),
        sa.Column("subdomain", sa.String(63), nullable=False),
        sa.Column("business_category", sa.String(120), nullable=True),
        sa.Column("logo_url", sa.String(512), nullable=True),
        sa.Column("banner_url", sa.String(512), nullable=True),
        sa.Column("is_open", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("accepts_delivery", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("accepts_pickup", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("delivery_fee", sa.Numeric(10, 2), nullable=True),
        sa.Column("delivery_time", sa.String(64), nullable=True),
        sa.Column("min_order_value", sa.Numeric(10, 2), nullable=True),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("owner_name", sa.String(255), nullable=True),
        sa.Column("contact_phone", sa.String(32), nullable=True),
        sa.Column("contact_email", sa.String(255), nullable=True),
        sa.Column("social_instagram", sa.String(255), nullable=True),
        sa.Column("social_facebook", sa.String(255), nullable=True),
        sa.Column("social_whatsapp", sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("subdomain", name="uq_commerces_subdomain"),
    )
    with op.batch_alter_table("commerces", schema=None) as batch_op:
        batch_op.create_index("ix_commerces_subdomain", ["subdomain"], unique=False)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("commerce_id", sa.Integer(), nullable=True),
        sa.Column("first_name", sa.String(120), nullable=True),
        sa.Column("last_name", sa.String(120), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["commerce_id"], ["commerces.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.create_index("ix_users_commerce_id", ["commerce_id"], unique=False)

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("commerce_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["commerce_id"], ["commerces.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("categories", schema=None) as batch_op:
        batch_op.create_index("ix_categories_commerce_id", ["commerce_id"], unique=False)
        batch_op.create_index("ix_categories_commerce_position", ["commerce_id", "position"], unique=False)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("commerce_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("image_url", sa.String(512), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        sa.ForeignKeyConstraint(["commerce_id"], ["commerces.id"]),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("products", schema=None) as batch_op:
        batch_op.create_index("ix_products_commerce_id", ["commerce_id"], unique=False)
        batch_op.create_index("ix_products_category_id", ["category_id"], unique=False)
        batch_op.create_index("ix_products_commerce_category", ["commerce_id", "category_id"], unique=False)

    op.create_table(
        "product_options",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("multiple", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("max_selections", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("product_options", schema=None) as batch_op:
        batch_op.create_index("ix_product_options_product_id", ["product_id"], unique=False)

    op.create_table(
        "option_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("option_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("price_addition", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("image_url", sa.String(512), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["option_id"], ["product_options.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("option_items", schema=None) as batch_op:
        batch_op.create_index("ix_option_items_option_id", ["option_id"], unique=False)

    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("commerce_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("color", sa.String(32), nullable=False),
        sa.Column("text_color", sa.String(32), nullable=False, server_default="#FFFFFF"),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("visible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("priority", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("discount", sa.Numeric(10, 2), nullable=True),
        sa.Column("disable_selection", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_recommended", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["commerce_id"], ["commerces.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("tags", schema=None) as batch_op:
        batch_op.create_index("ix_tags_commerce_id", ["commerce_id"], unique=False)
        batch_op.create_index("ix_tags_commerce_type", ["commerce_id", "type"], unique=False)

    for table, target_column, target_table in (
        ("product_tags", "product_id", "products"),
        ("option_tags", "option_id", "product_options"),
        ("item_tags", "item_id", "option_items"),
    ):
        op.create_table(
            table,
            sa.Column(target_column, sa.Integer(), nullable=False),
            sa.Column("tag_id", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
            sa.ForeignKeyConstraint([target_column], [f"{target_table}.id"]),
            sa.ForeignKeyConstraint(["tag_id"], ["tags.id"]),
            sa.PrimaryKeyConstraint(target_column, "tag_id"),
        )


def downgrade():
    for table in ("item_tags", "option_tags", "product_tags"):
        op.drop_table(table)

    with op.batch_alter_table("tags", schema=None) as batch_op:
        batch_op.drop_index("ix_tags_commerce_type")
        batch_op.drop_index("ix_tags_commerce_id")
    op.drop_table("tags")

    with op.batch_alter_table("option_items", schema=None) as batch_op:
        batch_op.drop_index("ix_option_items_option_id")
    op.drop_table("option_items")

    with op.batch_alter_table("product_options", schema=None) as batch_op:
        batch_op.drop_index("ix_product_options_product_id")
    op.drop_table("product_options")

    with op.batch_alter_table("products", schema=None) as batch_op:
        batch_op.drop_index("ix_products_commerce_category")
        batch_op.drop_index("ix_products_category_id")
        batch_op.drop_index("ix_products_commerce_id")
    op.drop_table("products")

    with op.batch_alter_table("categories", schema=None) as batch_op:
        batch_op.drop_index("ix_categories_commerce_position")
        batch_op.drop_index("ix_categories_commerce_id")
    op.drop_table("categories")

    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.drop_index("ix_users_commerce_id")
    op.drop_table("users")

    with op.batch_alter_table("commerces", schema=None) as batch_op:
        batch_op.drop_index("ix_commerces_subdomain")
    op.drop_table("commerces")
