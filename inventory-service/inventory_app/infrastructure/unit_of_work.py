from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from inventory_app.infrastructure.db_schema import outbox_tbl
from inventory_app.infrastructure.repositories import (
    AppliedAdjustmentRepository,
    ProductRepository,
)
from messaging.outbox import OutboxRepository


class UnitOfWork:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def __call__(self):
        async with self._session_factory() as session:
            try:
                yield _UnitOfWorkImplementation(session)
                # Rollback if commit wasn't explicitly called
                await session.rollback()
            except Exception:
                await session.rollback()
                raise


class _UnitOfWorkImplementation:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._product_repo = ProductRepository(session)
        self._applied_adjustment_repo = AppliedAdjustmentRepository(session)
        self._outbox_repo = OutboxRepository(session, outbox_tbl)

    @property
    def products(self) -> ProductRepository:
        return self._product_repo

    @property
    def applied_adjustments(self) -> AppliedAdjustmentRepository:
        return self._applied_adjustment_repo

    @property
    def outbox(self) -> OutboxRepository:
        return self._outbox_repo

    async def commit(self):
        await self._session.commit()
