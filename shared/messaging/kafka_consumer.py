import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from aiokafka import AIOKafkaConsumer

from messaging.events import EventEnvelope, MessageDeserializationError
from messaging.kafka_producer import KafkaProducer

logger = logging.getLogger(__name__)

MessageCallback = Callable[..., Awaitable[None]]


class KafkaEventConsumer:
    """
    Competing consumer over one or more topics.

    Every record is acknowledged (auto-commit) whatever the handler outcome.
    Records that cannot be decoded are never retried; other handler errors are
    retried up to ``max_attempts`` times. Records that are given up on go to
    ``dead_letter_topic`` when a dead-letter producer is configured and are
    dropped otherwise.
    """

    def __init__(
        self,
        bootstrap_servers: str,
        topics: list[str],
        group_id: str,
        process_message_callback: MessageCallback,
        dead_letter_producer: KafkaProducer | None = None,
        dead_letter_topic: str | None = None,
        max_attempts: int = 1,
    ):
        self._bootstrap_servers = bootstrap_servers
        self._topics = topics
        self._group_id = group_id
        self._process_message = process_message_callback
        self._dead_letter_producer = dead_letter_producer
        self._dead_letter_topic = dead_letter_topic
        self._max_attempts = max(1, max_attempts)
        self._consumer: AIOKafkaConsumer | None = None

    async def start(self):
        self._consumer = AIOKafkaConsumer(
            *self._topics,
            bootstrap_servers=self._bootstrap_servers,
            group_id=self._group_id,
            auto_offset_reset="earliest",
            enable_auto_commit=True,
        )
        await self._consumer.start()
        if self._dead_letter_producer and not self._dead_letter_producer.started:
            await self._dead_letter_producer.start()

    async def stop(self):
        if self._consumer:
            await self._consumer.stop()
        if self._dead_letter_producer:
            await self._dead_letter_producer.stop()

    async def consume(self):
        if not self._consumer:
            raise RuntimeError("Consumer not started")

        logger.info(
            f"Started consuming from topics: {self._topics} as group {self._group_id}"
        )

        try:
            async for message in self._consumer:
                await self.handle(message)
        except asyncio.CancelledError:
            logger.info("Consumer cancelled")
            raise
        except Exception as e:
            logger.error(f"Fatal error in consumer: {e}", exc_info=True)
            raise

    @staticmethod
    def _message_key(message: Any) -> str | None:
        # Keys are producer supplied; undecodable bytes must not stop the loop.
        if not message.key:
            return None
        return message.key.decode("utf-8", errors="replace")

    async def handle(self, message: Any) -> None:
        message_id = self._message_key(message)
        topic = message.topic

        try:
            envelope = EventEnvelope.decode(message.value)
        except MessageDeserializationError as e:
            logger.error(
                f"Discarding undecodable message {message_id} from {topic}: {e}"
            )
            await self._dead_letter(message, reason=f"deserialization: {e}")
            return

        logger.info(f"Processing {envelope.event_type} message {message_id} from {topic}")

        for attempt in range(1, self._max_attempts + 1):
            try:
                await self._process_message(
                    message_id=message_id, envelope=envelope, topic=topic
                )
                return
            except MessageDeserializationError as e:
                logger.error(f"Discarding invalid message {message_id}: {e}")
                await self._dead_letter(message, reason=f"deserialization: {e}")
                return
            except Exception as e:
                logger.error(
                    f"Error processing message {message_id} "
                    f"(attempt {attempt}/{self._max_attempts}): {e}",
                    exc_info=True,
                )
                last_error = e

        await self._dead_letter(message, reason=f"processing: {last_error}")

    async def _dead_letter(self, message: Any, reason: str) -> None:
        if not (self._dead_letter_producer and self._dead_letter_topic):
            return

        value = message.value
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")

        try:
            await self._dead_letter_producer.send_message(
                message={
                    "source_topic": message.topic,
                    "partition": message.partition,
                    "offset": message.offset,
                    "value": value,
                    "reason": reason,
                    "failed_at": datetime.now(timezone.utc).isoformat(),
                },
                key=self._message_key(message),
                topic=self._dead_letter_topic,
            )
            logger.warning(
                f"Routed message at {message.topic}:{message.partition}:{message.offset} "
                f"to {self._dead_letter_topic}"
            )
        except Exception as e:
            logger.error(
                f"Failed to dead-letter message at {message.topic}:"
                f"{message.partition}:{message.offset}: {e}",
                exc_info=True,
            )
