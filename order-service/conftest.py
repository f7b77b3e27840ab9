from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from dependency_injector import providers
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from messaging.kafka_producer import KafkaProducer
from messaging.outbox import OutboxRepository
from order_app.application.container import ApplicationContainer
from order_app.infrastructure.db_schema import metadata, outbox_tbl
from order_app.infrastructure.unit_of_work import UnitOfWork
from order_app.presentation import api

CONFIG_PATH = Path(__file__).parent / "config.yaml"


@pytest.fixture()
def kafka_producer() -> AsyncMock:
    producer = AsyncMock(spec=KafkaProducer)
    producer.started = True
    return producer


@pytest.fixture()
async def container(tmp_path: Path, kafka_producer: AsyncMock) -> ApplicationContainer:
    container = ApplicationContainer()
    container.config.from_yaml(CONFIG_PATH, required=True)
    container.config.infrastructure.db.dsn.from_value(
        f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}"
    )
    container.infrastructure_container.kafka_producer.override(
        providers.Object(kafka_producer)
    )
    return container


@pytest.fixture()
async def session_factory(
    container: ApplicationContainer,
) -> async_sessionmaker[AsyncSession]:
    return container.infrastructure_container.session_factory()


@pytest_asyncio.fixture()
async def session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncSession:
    async with session_factory() as session:
        yield session


@pytest.fixture()
async def uow(session_factory: async_sessionmaker[AsyncSession]) -> UnitOfWork:
    return UnitOfWork(session_factory)


@pytest.fixture()
def fast_api_app(container: ApplicationContainer):
    app = FastAPI()
    app.include_router(api.router)
    container.wire(modules=[api])
    app.container = container
    return app


@pytest_asyncio.fixture(autouse=True)
async def setup_database(container: ApplicationContainer):
    engine = container.infrastructure_container.async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture()
async def test_async_client(fast_api_app) -> AsyncClient:
    async with AsyncClient(
        transport=ASGITransport(app=fast_api_app),
        base_url="http://test.com",
    ) as client:
        client.app = fast_api_app
        yield client


@pytest.fixture
async def outbox_repo(session: AsyncSession) -> OutboxRepository:
    return OutboxRepository(session, outbox_tbl)
