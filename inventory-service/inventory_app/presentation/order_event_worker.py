import logging

from inventory_app.application.process_order_created import ProcessOrderCreatedUseCase
from messaging.events import EventEnvelope, EventTypeEnum, OrderCreatedEvent
from messaging.kafka_consumer import KafkaEventConsumer
from messaging.kafka_producer import KafkaProducer

logger = logging.getLogger(__name__)


class OrderEventWorker:
    def __init__(
        self,
        process_order_created_use_case: ProcessOrderCreatedUseCase,
        bootstrap_servers: str,
        topic: str,
        group_id: str,
        dead_letter_topic: str | None = None,
        max_attempts: int = 1,
    ):
        self._process_order_created_use_case = process_order_created_use_case
        self._consumer = KafkaEventConsumer(
            bootstrap_servers=bootstrap_servers,
            topics=[topic],
            group_id=group_id,
            process_message_callback=self._process_message,
            dead_letter_producer=(
                KafkaProducer(bootstrap_servers=bootstrap_servers, topic=dead_letter_topic)
                if dead_letter_topic
                else None
            ),
            dead_letter_topic=dead_letter_topic,
            max_attempts=max_attempts,
        )

    @property
    def consumer(self) -> KafkaEventConsumer:
        return self._consumer

    async def _process_message(
        self, message_id: str | None, envelope: EventEnvelope, topic: str
    ):
        if envelope.event_type != EventTypeEnum.ORDER_CREATED:
            logger.warning(
                f"Ignoring {envelope.event_type} message {message_id} on {topic}"
            )
            return

        event = envelope.unwrap(OrderCreatedEvent)
        await self._process_order_created_use_case(event)

    async def run(self):
        await self._consumer.start()
        try:
            await self._consumer.consume()
        finally:
            await self._consumer.stop()
