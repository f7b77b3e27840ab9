import logging
from decimal import Decimal

from pydantic import BaseModel, Field

from messaging.events import EventTypeEnum
from messaging.outbox import OutboxRepository
from order_app.application.pricing import PriceLookup
from order_app.application.publish_order_event import (
    OrderEventPublisher,
    build_order_created_event,
)
from order_app.core.models import Order, OrderItem, OrderStatusEnum, PublishModeEnum
from order_app.infrastructure.repositories import OrderRepository
from order_app.infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class OrderItemRequest(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)


class OrderDTO(BaseModel):
    customer_name: str
    customer_email: str
    order_items: list[OrderItemRequest]


class CreateOrderUseCase:
    def __init__(
        self,
        unit_of_work: UnitOfWork,
        price_lookup: PriceLookup,
        publisher: OrderEventPublisher | None = None,
        publish_mode: PublishModeEnum | str = PublishModeEnum.DIRECT,
    ):
        self._unit_of_work = unit_of_work
        self._price_lookup = price_lookup
        self._publisher = publisher
        self._publish_mode = PublishModeEnum(publish_mode)

    async def __call__(self, order: OrderDTO) -> Order:
        items = [await self._build_item(item) for item in order.order_items]
        total_amount = sum((item.total_price for item in items), start=Decimal("0"))

        async with self._unit_of_work() as uow:
            created = await uow.orders.create(
                order=OrderRepository.CreateDTO(
                    customer_name=order.customer_name,
                    customer_email=order.customer_email,
                    status=OrderStatusEnum.PENDING,
                    total_amount=total_amount,
                    items=items,
                )
            )
            if self._publish_mode == PublishModeEnum.OUTBOX:
                await uow.outbox.create(
                    event=OutboxRepository.CreateDTO(
                        event_type=EventTypeEnum.ORDER_CREATED,
                        payload=build_order_created_event(created).model_dump(
                            mode="json"
                        ),
                    )
                )
            await uow.commit()

        logger.info(
            f"Created order {created.id} for {created.customer_email}, "
            f"total: {created.total_amount}"
        )

        if self._publish_mode == PublishModeEnum.DIRECT and self._publisher:
            await self._publisher(created)

        return created

    async def _build_item(self, item: OrderItemRequest) -> OrderItem:
        quote = await self._price_lookup(item.product_id)
        return OrderItem(
            product_id=item.product_id,
            product_name=quote.product_name,
            quantity=item.quantity,
            unit_price=quote.unit_price,
            total_price=quote.unit_price * item.quantity,
        )
