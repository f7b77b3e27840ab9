from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Row, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_app.core.models import AppliedAdjustment, Product
from inventory_app.infrastructure.db_schema import (
    applied_adjustments_tbl,
    products_tbl,
)


class DoesNotExist(Exception):
    pass


class ProductRepository:
    class CreateDTO(BaseModel):
        id: int | None = None
        name: str
        stock_quantity: int
        updated_at: datetime | None = None

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _construct(row: Row | None) -> Product:
        if row is None:
            raise DoesNotExist

        return Product(
            id=row._mapping["id"],
            name=row._mapping["name"],
            stock_quantity=row._mapping["stock_quantity"],
            updated_at=row._mapping["updated_at"],
        )

    async def create(self, product: CreateDTO) -> Product:
        values = product.model_dump(exclude_none=True)
        stmt = insert(products_tbl).values(values).returning(products_tbl)
        result = await self._session.execute(stmt)

        return self._construct(result.first())

    async def get_by_id(self, product_id: int) -> Product:
        stmt = select(products_tbl).where(products_tbl.c.id == product_id)
        result = await self._session.execute(stmt)

        return self._construct(result.first())

    async def get_for_update(self, product_id: int) -> Product | None:
        """Load a product and hold its row lock until the transaction ends."""
        stmt = (
            select(products_tbl)
            .where(products_tbl.c.id == product_id)
            .with_for_update()
        )
        result = await self._session.execute(stmt)
        row = result.first()

        if row is None:
            return None

        return self._construct(row)

    async def decrement_stock(self, product_id: int, quantity: int) -> Product | None:
        """Returns None when the product has fewer than ``quantity`` units left."""
        stmt = (
            products_tbl.update()
            .where(
                products_tbl.c.id == product_id,
                products_tbl.c.stock_quantity >= quantity,
            )
            .values(
                stock_quantity=products_tbl.c.stock_quantity - quantity,
                updated_at=func.now(),
            )
            .returning(products_tbl)
        )
        result = await self._session.execute(stmt)
        row = result.first()

        if row is None:
            return None

        return self._construct(row)


class AppliedAdjustmentRepository:
    class CreateDTO(BaseModel):
        order_id: int
        product_id: int
        quantity: int

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _construct(row: Row | None) -> AppliedAdjustment:
        if row is None:
            raise DoesNotExist

        return AppliedAdjustment(
            id=row._mapping["id"],
            order_id=row._mapping["order_id"],
            product_id=row._mapping["product_id"],
            quantity=row._mapping["quantity"],
            created_at=row._mapping["created_at"],
        )

    async def exists(self, order_id: int, product_id: int) -> bool:
        stmt = select(applied_adjustments_tbl.c.id).where(
            applied_adjustments_tbl.c.order_id == order_id,
            applied_adjustments_tbl.c.product_id == product_id,
        )
        result = await self._session.execute(stmt)
        return result.first() is not None

    async def create(self, adjustment: CreateDTO) -> AppliedAdjustment:
        stmt = (
            insert(applied_adjustments_tbl)
            .values(adjustment.model_dump())
            .returning(applied_adjustments_tbl)
        )
        result = await self._session.execute(stmt)

        return self._construct(result.first())
