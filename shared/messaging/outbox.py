import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel
from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Integer,
    MetaData,
    Row,
    Table,
    Text,
    func,
    insert,
    select,
)
from sqlalchemy.ext.asyncio import AsyncSession

from messaging.events import EventTypeEnum


class OutboxEventStatus(StrEnum):
    PENDING = "PENDING"
    SENT = "SENT"


class OutboxEvent(BaseModel):
    id: str
    event_type: EventTypeEnum
    payload: dict
    status: OutboxEventStatus
    attempts: int
    last_error: str | None = None
    created_at: datetime


class OutboxEventNotFound(Exception):
    pass


def outbox_table(metadata: MetaData) -> Table:
    return Table(
        "outbox",
        metadata,
        Column("id", Text, primary_key=True, default=lambda: str(uuid.uuid4())),
        Column("event_type", Text, nullable=False),
        Column("payload", JSON, nullable=False),
        Column("status", Text, nullable=False, index=True),
        Column("attempts", Integer, nullable=False, server_default="0"),
        Column("last_error", Text, nullable=True),
        Column("created_at", DateTime, server_default=func.now()),
    )


class OutboxRepository:
    class CreateDTO(BaseModel):
        event_type: EventTypeEnum
        payload: dict

    def __init__(self, session: AsyncSession, table: Table):
        self._session = session
        self._table = table

    @staticmethod
    def _construct(row: Row | None) -> OutboxEvent:
        if row is None:
            raise OutboxEventNotFound

        return OutboxEvent(
            id=row._mapping["id"],
            event_type=row._mapping["event_type"],
            payload=row._mapping["payload"],
            status=row._mapping["status"],
            attempts=row._mapping["attempts"],
            last_error=row._mapping["last_error"],
            created_at=row._mapping["created_at"],
        )

    async def create(self, event: CreateDTO) -> OutboxEvent:
        stmt = (
            insert(self._table)
            .values(
                {
                    "id": str(uuid.uuid4()),
                    "event_type": event.event_type,
                    "payload": event.payload,
                    "status": OutboxEventStatus.PENDING,
                    "attempts": 0,
                }
            )
            .returning(self._table)
        )
        result = await self._session.execute(stmt)

        return self._construct(result.first())

    async def get_pending_events(self, limit: int = 100) -> list[OutboxEvent]:
        stmt = (
            select(self._table)
            .where(self._table.c.status == OutboxEventStatus.PENDING)
            .order_by(self._table.c.created_at)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        rows = result.fetchall()

        return [self._construct(row) for row in rows]

    async def get_by_id(self, event_id: str) -> OutboxEvent:
        stmt = select(self._table).where(self._table.c.id == event_id)
        result = await self._session.execute(stmt)

        return self._construct(result.first())

    async def mark_as_sent(self, event_id: str) -> None:
        stmt = (
            self._table.update()
            .where(self._table.c.id == event_id)
            .values(status=OutboxEventStatus.SENT)
        )
        await self._session.execute(stmt)

    async def mark_as_failed(self, event_id: str, error: str) -> None:
        stmt = (
            self._table.update()
            .where(self._table.c.id == event_id)
            .values(attempts=self._table.c.attempts + 1, last_error=error)
        )
        await self._session.execute(stmt)
