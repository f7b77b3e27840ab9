import logging

from inventory_app.application.decrement_stock import DecrementStockUseCase
from inventory_app.core.exceptions import (
    AdjustmentAlreadyApplied,
    InsufficientStock,
    ProductNotFound,
)
from inventory_app.infrastructure.unit_of_work import UnitOfWork
from messaging.events import (
    EventTypeEnum,
    ItemAdjustmentResult,
    OrderCreatedEvent,
    OrderItemEvent,
    StockAdjustmentOutcomeEnum,
    StockAdjustmentResultEvent,
)
from messaging.outbox import OutboxRepository

logger = logging.getLogger(__name__)


class ProcessOrderCreatedUseCase:
    def __init__(
        self,
        unit_of_work: UnitOfWork,
        decrement_stock: DecrementStockUseCase,
        report_results: bool = True,
    ):
        self._unit_of_work = unit_of_work
        self._decrement_stock = decrement_stock
        self._report_results = report_results

    async def __call__(self, event: OrderCreatedEvent) -> StockAdjustmentResultEvent:
        logger.info(
            f"Parsed order created event for order: {event.order_id}, "
            f"customer: {event.customer_name}"
        )

        # Items are adjusted one by one; a failed item neither stops the
        # remaining ones nor reverts the ones already applied.
        results = [await self._adjust(event.order_id, item) for item in event.order_items]
        outcome = StockAdjustmentResultEvent(order_id=event.order_id, results=results)

        if not outcome.fully_adjusted:
            failed = [r.product_id for r in results if not r.adjusted]
            logger.warning(
                f"Order {event.order_id} stock only partially adjusted, "
                f"products not adjusted: {failed}"
            )

        if self._report_results:
            await self._report(outcome)

        return outcome

    async def _adjust(self, order_id: int, item: OrderItemEvent) -> ItemAdjustmentResult:
        logger.info(
            f"Processing order item: productId={item.product_id}, quantity={item.quantity}"
        )
        try:
            product = await self._decrement_stock(
                product_id=item.product_id, quantity=item.quantity, order_id=order_id
            )
        except ProductNotFound as e:
            logger.error(f"Failed to update stock for order {order_id}: {e}")
            return self._result(item, StockAdjustmentOutcomeEnum.NOT_FOUND, reason=str(e))
        except InsufficientStock as e:
            logger.error(f"Failed to update stock for order {order_id}: {e}")
            return self._result(
                item,
                StockAdjustmentOutcomeEnum.INSUFFICIENT_STOCK,
                remaining_stock=e.available,
                reason=str(e),
            )
        except AdjustmentAlreadyApplied as e:
            logger.info(f"Skipping redelivered item: {e}")
            return self._result(
                item,
                StockAdjustmentOutcomeEnum.ALREADY_APPLIED,
                remaining_stock=e.stock_quantity,
            )
        except Exception as e:
            logger.error(
                f"Failed to update stock for product: {item.product_id}, order: {order_id}",
                exc_info=True,
            )
            return self._result(item, StockAdjustmentOutcomeEnum.FAILED, reason=str(e))

        logger.info(f"Successfully updated stock for product: {item.product_id}")
        return self._result(
            item,
            StockAdjustmentOutcomeEnum.ADJUSTED,
            remaining_stock=product.stock_quantity,
        )

    @staticmethod
    def _result(
        item: OrderItemEvent,
        outcome: StockAdjustmentOutcomeEnum,
        remaining_stock: int | None = None,
        reason: str | None = None,
    ) -> ItemAdjustmentResult:
        return ItemAdjustmentResult(
            product_id=item.product_id,
            quantity=item.quantity,
            outcome=outcome,
            remaining_stock=remaining_stock,
            reason=reason,
        )

    async def _report(self, outcome: StockAdjustmentResultEvent) -> None:
        try:
            async with self._unit_of_work() as uow:
                await uow.outbox.create(
                    OutboxRepository.CreateDTO(
                        event_type=EventTypeEnum.STOCK_ADJUSTED,
                        payload=outcome.model_dump(mode="json"),
                    )
                )
                await uow.commit()
        except Exception:
            logger.exception(
                f"Failed to record stock adjustment result for order {outcome.order_id}"
            )
