from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel

from messaging.events import StockAdjustmentOutcomeEnum


class OrderStatusEnum(StrEnum):
    PENDING = "PENDING"


class PublishModeEnum(StrEnum):
    # Send straight to Kafka after commit; failures are logged and dropped.
    DIRECT = "direct"
    # Write to the outbox in the order transaction; OutboxWorker relays it.
    OUTBOX = "outbox"


class OrderItem(BaseModel):
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class StockAdjustment(BaseModel):
    product_id: int
    quantity: int
    outcome: StockAdjustmentOutcomeEnum
    remaining_stock: int | None = None
    reason: str | None = None
    created_at: datetime


class Order(BaseModel):
    id: int
    customer_name: str
    customer_email: str
    status: OrderStatusEnum
    total_amount: Decimal
    items: list[OrderItem]
    created_at: datetime
    updated_at: datetime
    stock_adjustments: list[StockAdjustment] = []


class InboxEventStatus(StrEnum):
    PENDING = "PENDING"
    PROCESSED = "PROCESSED"


class InboxEvent(BaseModel):
    id: str
    message_id: str
    event_type: str
    payload: dict
    status: InboxEventStatus
    created_at: datetime
