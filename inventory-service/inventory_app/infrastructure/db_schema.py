from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
    func,
)

from messaging.outbox import outbox_table

metadata = MetaData()

products_tbl = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", Text, nullable=False),
    Column("stock_quantity", Integer, nullable=False),
    Column("created_at", DateTime, server_default=func.now()),
    Column("updated_at", DateTime, server_default=func.now(), nullable=False),
    CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
)

applied_adjustments_tbl = Table(
    "applied_adjustments",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("order_id", Integer, nullable=False),
    Column("product_id", Integer, nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("created_at", DateTime, server_default=func.now()),
    UniqueConstraint("order_id", "product_id", name="uq_applied_adjustment"),
)

outbox_tbl = outbox_table(metadata)
