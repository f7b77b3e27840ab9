import asyncio
import logging
from typing import Any, Callable

from messaging.events import EventEnvelope, EventTypeEnum
from messaging.kafka_producer import KafkaProducer

logger = logging.getLogger(__name__)


class ProcessOutboxEventsUseCase:
    def __init__(
        self,
        unit_of_work: Callable[..., Any],
        kafka_producer: KafkaProducer,
        topics: dict[EventTypeEnum, str] | None = None,
        batch_size: int = 100,
    ):
        self._unit_of_work = unit_of_work
        self._kafka_producer = kafka_producer
        self._topics = topics or {}
        self._batch_size = batch_size

    async def __call__(self) -> int:
        """
        Relay pending outbox events to Kafka in creation order.

        Each event is marked SENT in its own transaction once the broker has
        acknowledged it. A failed send leaves the event PENDING with its
        attempt counter bumped, so the next call retries it.
        Returns the number of events sent.
        """
        async with self._unit_of_work() as uow:
            events = await uow.outbox.get_pending_events(limit=self._batch_size)

        if not events:
            return 0

        if not self._kafka_producer.started:
            await self._kafka_producer.start()

        sent = 0
        for event in events:
            async with self._unit_of_work() as uow:
                try:
                    envelope = EventEnvelope(
                        event_type=event.event_type,
                        payload=event.payload,
                        created_at=event.created_at,
                    )
                    await self._kafka_producer.send_message(
                        message=envelope.model_dump(mode="json"),
                        key=event.id,
                        topic=self._topics.get(event.event_type),
                    )
                except Exception as e:
                    logger.error(
                        f"Failed to send outbox event {event.id} "
                        f"(attempt {event.attempts + 1}): {e}",
                        exc_info=True,
                    )
                    await uow.outbox.mark_as_failed(event.id, error=str(e))
                    await uow.commit()
                    continue

                await uow.outbox.mark_as_sent(event.id)
                await uow.commit()
                sent += 1

        logger.info(f"Relayed {sent}/{len(events)} outbox events")
        return sent

    async def close(self) -> None:
        await self._kafka_producer.stop()


class OutboxWorker:
    def __init__(
        self, use_case: ProcessOutboxEventsUseCase, poll_interval: float = 0.5
    ):
        self._use_case = use_case
        self._poll_interval = poll_interval

    async def run(self):
        try:
            while True:
                try:
                    await self._use_case()
                except Exception as e:
                    logger.error(f"Outbox relay iteration failed: {e}", exc_info=True)
                await asyncio.sleep(self._poll_interval)
        finally:
            await self._use_case.close()
