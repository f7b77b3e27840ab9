from sqlalchemy import (
    DECIMAL,
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Table,
    Text,
    func,
)

from messaging.outbox import outbox_table

metadata = MetaData()

orders_tbl = Table(
    "orders",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("customer_name", Text, nullable=False),
    Column("customer_email", Text, nullable=False),
    Column("status", Text, nullable=False),
    Column("total_amount", DECIMAL(10, 2), nullable=False),
    Column("items", JSON, nullable=False),
    Column("created_at", DateTime, server_default=func.now(), nullable=False),
    Column(
        "updated_at",
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    ),
)

stock_adjustments_tbl = Table(
    "stock_adjustments",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("order_id", Integer, ForeignKey("orders.id"), nullable=False, index=True),
    Column("product_id", Integer, nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("outcome", Text, nullable=False),
    Column("remaining_stock", Integer, nullable=True),
    Column("reason", Text, nullable=True),
    Column("created_at", DateTime, server_default=func.now(), nullable=False),
)

outbox_tbl = outbox_table(metadata)

inbox_tbl = Table(
    "inbox",
    metadata,
    Column("id", Text, primary_key=True),
    Column("message_id", Text, nullable=False, unique=True, index=True),
    Column("event_type", Text, nullable=False),
    Column("payload", JSON, nullable=False),
    Column("status", Text, nullable=False),
    Column("created_at", DateTime, server_default=func.now()),
)
