import logging

from messaging.events import EventTypeEnum, StockAdjustmentResultEvent
from order_app.infrastructure.repositories import (
    InboxRepository,
    StockAdjustmentRepository,
)
from order_app.infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class RecordStockAdjustmentUseCase:
    """
    Store what the inventory service did with each item of an order.

    Messages are deduplicated by id through the inbox. The order status is
    left as it is whatever the outcome; a partially adjusted order is only
    logged and made visible through its stock adjustments.
    """

    def __init__(self, unit_of_work: UnitOfWork):
        self._unit_of_work = unit_of_work

    async def __call__(
        self, message_id: str | None, result: StockAdjustmentResultEvent
    ) -> None:
        async with self._unit_of_work() as uow:
            if message_id and await uow.inbox.exists(message_id):
                logger.info(f"Skipping already processed message {message_id}")
                return

            inbox_event = None
            if message_id:
                inbox_event = await uow.inbox.create(
                    InboxRepository.CreateDTO(
                        message_id=message_id,
                        event_type=EventTypeEnum.STOCK_ADJUSTED,
                        payload=result.model_dump(mode="json"),
                    )
                )

            if await uow.orders.exists(result.order_id):
                for item in result.results:
                    await uow.stock_adjustments.create(
                        StockAdjustmentRepository.CreateDTO(
                            order_id=result.order_id,
                            product_id=item.product_id,
                            quantity=item.quantity,
                            outcome=item.outcome,
                            remaining_stock=item.remaining_stock,
                            reason=item.reason,
                        )
                    )
            else:
                logger.warning(
                    f"Received stock adjustments for unknown order {result.order_id}"
                )

            if inbox_event:
                await uow.inbox.mark_as_processed(inbox_event.id)
            await uow.commit()

        if not result.fully_adjusted:
            logger.warning(
                f"Order {result.order_id} was only partially fulfilled by inventory: "
                + ", ".join(
                    f"product {r.product_id} {r.outcome}" for r in result.results
                )
            )
