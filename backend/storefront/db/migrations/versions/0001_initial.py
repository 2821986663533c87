"""Initial schema"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


delivery_type_enum = sa.Enum("HOME_DELIVERY", "PICKUP", name="deliverytype")
call_center_status_enum = sa.Enum(
    "NEW",
    "CONFIRMED",
    "PENDING",
    "CANCELED",
    "DOUBLE_ORDER",
    "DELAYED",
    "NO_RESPONSE",
    name="callcenterstatus",
)
delivery_status_enum = sa.Enum("NOT_READY", "READY", "IN_TRANSIT", "DONE", name="deliverystatus")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    delivery_type_enum.create(bind, checkfirst=True)
    call_center_status_enum.create(bind, checkfirst=True)
    delivery_status_enum.create(bind, checkfirst=True)

    op.create_table(
        "cities",
        *_timestamps(),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("name_ar", sa.String(length=128)),
        sa.Column("code", sa.String(length=2), nullable=False),
        sa.Column("delivery_fee", sa.Numeric(10, 2), nullable=False, server_default="500"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_cities_name", "cities", ["name"])
    op.create_index("ix_cities_code", "cities", ["code"])

    op.create_table(
        "delivery_desks",
        *_timestamps(),
        sa.Column("city_id", sa.Integer(), sa.ForeignKey("cities.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("name_ar", sa.String(length=255)),
        sa.Column("address", sa.String(length=512), nullable=False),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("external_id", sa.String(length=64)),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_delivery_desks_city_id", "delivery_desks", ["city_id"])
    op.create_index("ix_delivery_desks_external_id", "delivery_desks", ["external_id"])

    op.create_table(
        "categories",
        *_timestamps(),
        sa.Column("slug", sa.String(length=128), nullable=False, unique=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("name_ar", sa.String(length=128)),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "products",
        *_timestamps(),
        sa.Column("reference", sa.String(length=64), unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("name_ar", sa.String(length=255)),
        sa.Column("description", sa.Text()),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id", ondelete="SET NULL")),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("old_price", sa.Numeric(10, 2)),
        sa.Column("stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_on_sale", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("weight_kg", sa.Numeric(8, 3)),
        sa.Column("length_cm", sa.Numeric(8, 2)),
        sa.Column("width_cm", sa.Numeric(8, 2)),
        sa.Column("height_cm", sa.Numeric(8, 2)),
        sa.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )
    op.create_index("ix_products_category_id", "products", ["category_id"])

    op.create_table(
        "product_sizes",
        *_timestamps(),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("size", sa.String(length=32), nullable=False),
        sa.Column("stock", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("product_id", "size", name="uq_product_sizes_product_size"),
        sa.CheckConstraint("stock >= 0", name="ck_product_sizes_stock_non_negative"),
    )
    op.create_index("ix_product_sizes_product_id", "product_sizes", ["product_id"])

    op.create_table(
        "orders",
        *_timestamps(),
        sa.Column("order_number", sa.String(length=32), unique=True),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_phone", sa.String(length=32), nullable=False),
        sa.Column("customer_email", sa.String(length=255)),
        sa.Column("delivery_type", delivery_type_enum, nullable=False),
        sa.Column("delivery_address", sa.String(length=512)),
        sa.Column("city_id", sa.Integer(), sa.ForeignKey("cities.id"), nullable=False),
        sa.Column("delivery_desk_id", sa.Integer(), sa.ForeignKey("delivery_desks.id", ondelete="SET NULL")),
        sa.Column("delivery_fee", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("subtotal", sa.Numeric(10, 2), nullable=False),
        sa.Column("total", sa.Numeric(10, 2), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("call_center_status", call_center_status_enum, nullable=False, server_default="NEW"),
        sa.Column("delivery_status", delivery_status_enum, nullable=False, server_default="NOT_READY"),
        sa.Column("tracking_number", sa.String(length=64)),
        sa.Column("yalidine_shipment_id", sa.String(length=64)),
    )
    op.create_index("ix_orders_order_number", "orders", ["order_number"])
    op.create_index("ix_orders_customer_phone", "orders", ["customer_phone"])
    op.create_index("ix_orders_city_id", "orders", ["city_id"])
    op.create_index("ix_orders_call_center_status", "orders", ["call_center_status"])
    op.create_index("ix_orders_delivery_status", "orders", ["delivery_status"])
    op.create_index("ix_orders_tracking_number", "orders", ["tracking_number"])

    op.create_table(
        "order_items",
        *_timestamps(),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("size_id", sa.Integer(), sa.ForeignKey("product_sizes.id", ondelete="SET NULL")),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("size", sa.String(length=32)),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])
    op.create_index("ix_order_items_product_id", "order_items", ["product_id"])


def downgrade() -> None:
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("product_sizes")
    op.drop_table("products")
    op.drop_table("categories")
    op.drop_table("delivery_desks")
    op.drop_table("cities")

    delivery_status_enum.drop(op.get_bind(), checkfirst=True)
    call_center_status_enum.drop(op.get_bind(), checkfirst=True)
    delivery_type_enum.drop(op.get_bind(), checkfirst=True)
