from datetime import datetime, timezone
from decimal import Decimal
from enum import StrEnum
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

T = TypeVar("T", bound=BaseModel)


class MessageDeserializationError(Exception):
    pass


class EventTypeEnum(StrEnum):
    ORDER_CREATED = "ORDER.CREATED"
    STOCK_ADJUSTED = "STOCK.ADJUSTED"


class OrderItemEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: int
    product_name: str
    quantity: int = Field(gt=0)
    unit_price: Decimal
    total_price: Decimal


class OrderCreatedEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: int
    customer_name: str
    customer_email: str
    status: str
    total_amount: Decimal
    created_at: datetime
    order_items: list[OrderItemEvent]


class StockAdjustmentOutcomeEnum(StrEnum):
    ADJUSTED = "ADJUSTED"
    NOT_FOUND = "NOT_FOUND"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    ALREADY_APPLIED = "ALREADY_APPLIED"
    FAILED = "FAILED"


class ItemAdjustmentResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: int
    quantity: int
    outcome: StockAdjustmentOutcomeEnum
    remaining_stock: int | None = None
    reason: str | None = None

    @property
    def adjusted(self) -> bool:
        return self.outcome in (
            StockAdjustmentOutcomeEnum.ADJUSTED,
            StockAdjustmentOutcomeEnum.ALREADY_APPLIED,
        )


class StockAdjustmentResultEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: int
    results: list[ItemAdjustmentResult]

    @property
    def fully_adjusted(self) -> bool:
        return all(r.adjusted for r in self.results)


class EventEnvelope(BaseModel):
    """Document carried as the value of every message on the bus."""

    event_type: EventTypeEnum
    payload: dict
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def wrap(cls, event_type: EventTypeEnum, event: BaseModel) -> "EventEnvelope":
        return cls(event_type=event_type, payload=event.model_dump(mode="json"))

    @classmethod
    def decode(cls, raw: bytes | str | None) -> "EventEnvelope":
        if raw is None:
            raise MessageDeserializationError("Empty message value")
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise MessageDeserializationError(str(e)) from e

    def unwrap(self, model: type[T]) -> T:
        try:
            return model.model_validate(self.payload)
        except ValidationError as e:
            raise MessageDeserializationError(
                f"Invalid {self.event_type} payload: {e}"
            ) from e
