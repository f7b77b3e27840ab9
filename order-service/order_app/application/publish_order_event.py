import logging
import uuid

from messaging.events import (
    EventEnvelope,
    EventTypeEnum,
    OrderCreatedEvent,
    OrderItemEvent,
)
from messaging.kafka_producer import KafkaProducer
from order_app.core.models import Order

logger = logging.getLogger(__name__)


def build_order_created_event(order: Order) -> OrderCreatedEvent:
    return OrderCreatedEvent(
        order_id=order.id,
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        status=order.status,
        total_amount=order.total_amount,
        created_at=order.created_at,
        order_items=[
            OrderItemEvent(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=item.total_price,
            )
            for item in order.items
        ],
    )


class OrderEventPublisher:
    """
    Fire-and-forget publication of ORDER.CREATED.

    Runs after the order is committed. A failure to serialize or deliver is
    logged and swallowed so the caller still gets its order; nothing retries
    the event. Use the outbox publishing mode when that is not acceptable.
    """

    def __init__(self, kafka_producer: KafkaProducer, topic: str):
        self._kafka_producer = kafka_producer
        self._topic = topic

    async def __call__(self, order: Order) -> bool:
        try:
            envelope = EventEnvelope.wrap(
                EventTypeEnum.ORDER_CREATED, build_order_created_event(order)
            )
            if not self._kafka_producer.started:
                await self._kafka_producer.start()
            # Unique key per message: no ordering between orders.
            await self._kafka_producer.send_message(
                message=envelope.model_dump(mode="json"),
                key=str(uuid.uuid4()),
                topic=self._topic,
            )
        except Exception:
            logger.exception(f"Failed to publish order created event for order {order.id}")
            return False

        logger.info(f"Published order created event for order {order.id} to {self._topic}")
        return True

    async def close(self) -> None:
        await self._kafka_producer.stop()
