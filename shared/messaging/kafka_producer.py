import json
import logging
from typing import Any

from aiokafka import AIOKafkaProducer

logger = logging.getLogger(__name__)


class KafkaProducer:
    def __init__(
        self,
        bootstrap_servers: str,
        topic: str,
    ):
        self._bootstrap_servers = bootstrap_servers
        self._topic = topic
        self._producer: AIOKafkaProducer | None = None

    @property
    def started(self) -> bool:
        return self._producer is not None

    async def start(self):
        """Initialize and start the Kafka producer"""
        self._producer = AIOKafkaProducer(
            bootstrap_servers=self._bootstrap_servers,
            value_serializer=lambda v: json.dumps(v).encode("utf-8"),
            key_serializer=lambda k: k.encode("utf-8") if k else None,
        )
        await self._producer.start()
        logger.info(f"Kafka producer connected to {self._bootstrap_servers}")

    async def stop(self):
        """Stop the Kafka producer"""
        if self._producer:
            await self._producer.stop()
            self._producer = None

    async def send_message(
        self,
        message: dict[str, Any],
        key: str | None = None,
        topic: str | None = None,
    ) -> None:
        """Send a message to Kafka and wait for the broker acknowledgement"""
        if not self._producer:
            raise RuntimeError("Producer is not started. Call start() first.")

        target_topic = topic or self._topic
        await self._producer.send_and_wait(
            topic=target_topic,
            value=message,
            key=key,
        )

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
