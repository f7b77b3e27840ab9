import uuid
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Row, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from messaging.events import StockAdjustmentOutcomeEnum
from order_app.core.models import (
    InboxEvent,
    InboxEventStatus,
    Order,
    OrderItem,
    OrderStatusEnum,
    StockAdjustment,
)
from order_app.infrastructure.db_schema import (
    inbox_tbl,
    orders_tbl,
    stock_adjustments_tbl,
)


class DoesNotExist(Exception):
    pass


class OrderRepository:
    class CreateDTO(BaseModel):
        customer_name: str
        customer_email: str
        status: OrderStatusEnum
        total_amount: Decimal
        items: list[OrderItem]

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _construct(
        row: Row | None, stock_adjustments: list[StockAdjustment] | None = None
    ) -> Order:
        if row is None:
            raise DoesNotExist

        return Order(
            id=row._mapping["id"],
            customer_name=row._mapping["customer_name"],
            customer_email=row._mapping["customer_email"],
            status=row._mapping["status"],
            total_amount=row._mapping["total_amount"],
            items=row._mapping["items"],
            created_at=row._mapping["created_at"],
            updated_at=row._mapping["updated_at"],
            stock_adjustments=stock_adjustments or [],
        )

    async def create(self, order: CreateDTO) -> Order:
        stmt = (
            insert(orders_tbl)
            .values(
                {
                    "customer_name": order.customer_name,
                    "customer_email": order.customer_email,
                    "status": order.status,
                    "total_amount": order.total_amount,
                    "items": [item.model_dump(mode="json") for item in order.items],
                }
            )
            .returning(orders_tbl)
        )
        result = await self._session.execute(stmt)

        return self._construct(result.first())

    async def exists(self, order_id: int) -> bool:
        stmt = select(orders_tbl.c.id).where(orders_tbl.c.id == order_id)
        result = await self._session.execute(stmt)
        return result.first() is not None

    async def get_by_id(self, order_id: int) -> Order:
        """Load an order together with the stock adjustments recorded for it."""
        stmt = select(orders_tbl).where(orders_tbl.c.id == order_id)
        result = await self._session.execute(stmt)
        row = result.first()

        if row is None:
            raise DoesNotExist(f"Order with id {order_id} not found")

        adjustments = await StockAdjustmentRepository(self._session).list_by_order(
            order_id
        )
        return self._construct(row, adjustments)


class StockAdjustmentRepository:
    class CreateDTO(BaseModel):
        order_id: int
        product_id: int
        quantity: int
        outcome: StockAdjustmentOutcomeEnum
        remaining_stock: int | None = None
        reason: str | None = None

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _construct(row: Row | None) -> StockAdjustment:
        if row is None:
            raise DoesNotExist

        return StockAdjustment(
            product_id=row._mapping["product_id"],
            quantity=row._mapping["quantity"],
            outcome=row._mapping["outcome"],
            remaining_stock=row._mapping["remaining_stock"],
            reason=row._mapping["reason"],
            created_at=row._mapping["created_at"],
        )

    async def create(self, adjustment: CreateDTO) -> StockAdjustment:
        stmt = (
            insert(stock_adjustments_tbl)
            .values(adjustment.model_dump())
            .returning(stock_adjustments_tbl)
        )
        result = await self._session.execute(stmt)

        return self._construct(result.first())

    async def list_by_order(self, order_id: int) -> list[StockAdjustment]:
        stmt = (
            select(stock_adjustments_tbl)
            .where(stock_adjustments_tbl.c.order_id == order_id)
            .order_by(stock_adjustments_tbl.c.id)
        )
        result = await self._session.execute(stmt)

        return [self._construct(row) for row in result.fetchall()]


class InboxRepository:
    class CreateDTO(BaseModel):
        message_id: str
        event_type: str
        payload: dict

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _construct(row: Row | None) -> InboxEvent:
        if row is None:
            raise DoesNotExist

        return InboxEvent(
            id=row._mapping["id"],
            message_id=row._mapping["message_id"],
            event_type=row._mapping["event_type"],
            payload=row._mapping["payload"],
            status=row._mapping["status"],
            created_at=row._mapping["created_at"],
        )

    async def exists(self, message_id: str) -> bool:
        """Check if message was already processed"""
        stmt = select(inbox_tbl.c.id).where(inbox_tbl.c.message_id == message_id)
        result = await self._session.execute(stmt)
        return result.first() is not None

    async def create(self, event: CreateDTO) -> InboxEvent:
        stmt = (
            insert(inbox_tbl)
            .values(
                {
                    "id": str(uuid.uuid4()),
                    "message_id": event.message_id,
                    "event_type": event.event_type,
                    "payload": event.payload,
                    "status": InboxEventStatus.PENDING,
                }
            )
            .returning(inbox_tbl)
        )
        result = await self._session.execute(stmt)

        return self._construct(result.first())

    async def mark_as_processed(self, event_id: str) -> None:
        stmt = (
            inbox_tbl.update()
            .where(inbox_tbl.c.id == event_id)
            .values(status=InboxEventStatus.PROCESSED)
        )
        await self._session.execute(stmt)
