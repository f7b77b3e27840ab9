import asyncio
import logging
from pathlib import Path

import uvicorn
from fastapi import FastAPI

from inventory_app.application.container import ApplicationContainer
from inventory_app.presentation import api
from inventory_app.presentation.api import router
from inventory_app.presentation.container import PresentationContainer
from inventory_app.presentation.order_event_worker import OrderEventWorker
from messaging.outbox_relay import OutboxWorker

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).resolve().parents[1] / "config.yaml"


def build_api(container: ApplicationContainer):
    app = FastAPI(title="Inventory Service")
    app.include_router(router)
    container.wire(modules=[api])
    return app


async def main():
    presentation_container = PresentationContainer()
    presentation_container.config.from_yaml(CONFIG_PATH, required=True)

    app = build_api(presentation_container.application)

    order_event_worker: OrderEventWorker = presentation_container.order_event_worker()
    outbox_worker: OutboxWorker = presentation_container.outbox_worker()

    logger.info("Starting Inventory Service...")
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
    consumer_task = asyncio.create_task(order_event_worker.run())
    outbox_task = asyncio.create_task(outbox_worker.run())

    await asyncio.gather(api_task, consumer_task, outbox_task)


if __name__ == "__main__":
    asyncio.run(main())
