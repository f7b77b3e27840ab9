import logging

from messaging.events import EventEnvelope, EventTypeEnum, StockAdjustmentResultEvent
from messaging.kafka_consumer import KafkaEventConsumer
from messaging.kafka_producer import KafkaProducer
from order_app.application.record_stock_adjustment import RecordStockAdjustmentUseCase

logger = logging.getLogger(__name__)


class EventConsumerWorker:
    def __init__(
        self,
        record_stock_adjustment_use_case: RecordStockAdjustmentUseCase,
        bootstrap_servers: str,
        topic: str,
        group_id: str,
        dead_letter_topic: str | None = None,
        max_attempts: int = 1,
    ):
        self._record_stock_adjustment_use_case = record_stock_adjustment_use_case
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
        if envelope.event_type != EventTypeEnum.STOCK_ADJUSTED:
            logger.warning(f"Unknown event type {envelope.event_type} on {topic}")
            return

        result = envelope.unwrap(StockAdjustmentResultEvent)
        await self._record_stock_adjustment_use_case(
            message_id=message_id, result=result
        )

    async def run(self):
        await self._consumer.start()
        try:
            await self._consumer.consume()
        finally:
            await self._consumer.stop()
