import asyncio
import logging
from pathlib import Path

import uvicorn
from fastapi import FastAPI

from messaging.outbox_relay import OutboxWorker
from order_app.application.container import ApplicationContainer
from order_app.application.publish_order_event import OrderEventPublisher
from order_app.presentation import api
from order_app.presentation.api import router
from order_app.presentation.container import PresentationContainer
from order_app.presentation.event_consumer_worker import EventConsumerWorker

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).resolve().parents[1] / "config.yaml"


def build_api(container: ApplicationContainer):
    app = FastAPI(title="Order Service")
    app.include_router(router)
    container.wire(modules=[api])
    return app


async def main():
    presentation_container = PresentationContainer()
    presentation_container.config.from_yaml(CONFIG_PATH, required=True)

    app = build_api(presentation_container.application)

    outbox_worker: OutboxWorker = presentation_container.outbox_worker()
    event_consumer: EventConsumerWorker = presentation_container.event_consumer_worker()
    publisher: OrderEventPublisher = (
        presentation_container.application.order_event_publisher()
    )

    logger.info(
        "Starting Order Service, publishing mode: "
        f"{presentation_container.config.publishing.mode()}"
    )
    api_task = asyncio.create_task(
        uvicorn.Server(
            uvicorn.Config(
                app,
                host=presentation_container.config.api.host(),
                port=presentation_container.config.api.port(),
                log_level="info",
            )
        ).serve()
    )
    outbox_task = asyncio.create_task(outbox_worker.run())
    consumer_task = asyncio.create_task(event_consumer.run())

    try:
        await asyncio.gather(api_task, outbox_task, consumer_task)
    finally:
        await publisher.close()


if __name__ == "__main__":
    asyncio.run(main())
