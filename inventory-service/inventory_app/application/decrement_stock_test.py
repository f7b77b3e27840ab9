import asyncio
from datetime import datetime

import pytest

from inventory_app.application.decrement_stock import DecrementStockUseCase
from inventory_app.core.exceptions import (
    AdjustmentAlreadyApplied,
    InsufficientStock,
    ProductNotFound,
)
from inventory_app.infrastructure.unit_of_work import UnitOfWork


@pytest.fixture
async def decrement_stock(uow: UnitOfWork) -> DecrementStockUseCase:
    return DecrementStockUseCase(unit_of_work=uow)


@pytest.fixture
async def deduplicating_decrement_stock(uow: UnitOfWork) -> DecrementStockUseCase:
    return DecrementStockUseCase(unit_of_work=uow, deduplicate=True)


async def stock_of(uow: UnitOfWork, product_id: int):
    async with uow() as unit:
        return await unit.products.get_by_id(product_id)


class TestDecrementStockUseCase:
    @pytest.mark.asyncio
    async def test_decrement_within_stock(
        self, decrement_stock: DecrementStockUseCase, product_factory, uow: UnitOfWork
    ):
        # Given
        product = await product_factory(stock_quantity=10)

        # When
        updated = await decrement_stock(product_id=product.id, quantity=3)

        # Then
        assert updated.stock_quantity == 7
        assert updated.updated_at > datetime(2020, 1, 1)
        persisted = await stock_of(uow, product.id)
        assert persisted.stock_quantity == 7
        assert persisted.updated_at > product.updated_at

    @pytest.mark.asyncio
    async def test_decrement_to_exactly_zero(
        self, decrement_stock: DecrementStockUseCase, product_factory
    ):
        # Given
        product = await product_factory(stock_quantity=2)

        # When
        updated = await decrement_stock(product_id=product.id, quantity=2)

        # Then
        assert updated.stock_quantity == 0

    @pytest.mark.asyncio
    async def test_insufficient_stock_leaves_ledger_unchanged(
        self, decrement_stock: DecrementStockUseCase, product_factory, uow: UnitOfWork
    ):
        # Given
        product = await product_factory(stock_quantity=1)

        # When
        with pytest.raises(InsufficientStock) as exc_info:
            await decrement_stock(product_id=product.id, quantity=2)

        # Then
        assert exc_info.value.product_id == product.id
        assert exc_info.value.available == 1
        assert exc_info.value.requested == 2
        persisted = await stock_of(uow, product.id)
        assert persisted.stock_quantity == 1
        assert persisted.updated_at == product.updated_at

    @pytest.mark.asyncio
    async def test_unknown_product(self, decrement_stock: DecrementStockUseCase):
        with pytest.raises(ProductNotFound, match="999"):
            await decrement_stock(product_id=999, quantity=1)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -5])
    async def test_rejects_non_positive_quantity(
        self, decrement_stock: DecrementStockUseCase, product_factory, uow, quantity
    ):
        # Given
        product = await product_factory(stock_quantity=10)

        # When / Then
        with pytest.raises(ValueError):
            await decrement_stock(product_id=product.id, quantity=quantity)
        assert (await stock_of(uow, product.id)).stock_quantity == 10

    @pytest.mark.asyncio
    async def test_repeated_call_decrements_twice_without_deduplication(
        self, decrement_stock: DecrementStockUseCase, product_factory, uow: UnitOfWork
    ):
        # Given
        product = await product_factory(stock_quantity=10)

        # When - same order delivered twice
        await decrement_stock(product_id=product.id, quantity=2, order_id=1)
        await decrement_stock(product_id=product.id, quantity=2, order_id=1)

        # Then
        assert (await stock_of(uow, product.id)).stock_quantity == 6

    @pytest.mark.asyncio
    async def test_repeated_call_is_rejected_with_deduplication(
        self,
        deduplicating_decrement_stock: DecrementStockUseCase,
        product_factory,
        uow: UnitOfWork,
    ):
        # Given
        product = await product_factory(stock_quantity=10)
        await deduplicating_decrement_stock(product_id=product.id, quantity=2, order_id=1)

        # When
        with pytest.raises(AdjustmentAlreadyApplied) as exc_info:
            await deduplicating_decrement_stock(
                product_id=product.id, quantity=2, order_id=1
            )

        # Then
        assert exc_info.value.stock_quantity == 8
        assert (await stock_of(uow, product.id)).stock_quantity == 8

    @pytest.mark.asyncio
    async def test_deduplication_is_per_order_and_product(
        self,
        deduplicating_decrement_stock: DecrementStockUseCase,
        product_factory,
        uow: UnitOfWork,
    ):
        # Given
        first = await product_factory(stock_quantity=10)
        second = await product_factory(stock_quantity=10)

        # When
        await deduplicating_decrement_stock(product_id=first.id, quantity=1, order_id=1)
        await deduplicating_decrement_stock(product_id=second.id, quantity=1, order_id=1)
        await deduplicating_decrement_stock(product_id=first.id, quantity=1, order_id=2)

        # Then
        assert (await stock_of(uow, first.id)).stock_quantity == 8
        assert (await stock_of(uow, second.id)).stock_quantity == 9

    @pytest.mark.asyncio
    async def test_failed_decrement_is_not_recorded_as_applied(
        self,
        deduplicating_decrement_stock: DecrementStockUseCase,
        product_factory,
        uow: UnitOfWork,
    ):
        # Given
        product = await product_factory(stock_quantity=1)

        # When
        with pytest.raises(InsufficientStock):
            await deduplicating_decrement_stock(
                product_id=product.id, quantity=5, order_id=7
            )

        # Then
        async with uow() as unit:
            assert not await unit.applied_adjustments.exists(7, product.id)

    @pytest.mark.asyncio
    async def test_concurrent_decrements_are_not_lost(
        self, decrement_stock: DecrementStockUseCase, product_factory, uow: UnitOfWork
    ):
        # Given
        product = await product_factory(stock_quantity=20)

        # When
        results = await asyncio.gather(
            *(decrement_stock(product_id=product.id, quantity=2) for _ in range(5))
        )

        # Then
        assert all(r.stock_quantity >= 0 for r in results)
        assert sorted(r.stock_quantity for r in results) == [10, 12, 14, 16, 18]
        assert (await stock_of(uow, product.id)).stock_quantity == 10

    @pytest.mark.asyncio
    async def test_oversubscribed_concurrent_decrements_stop_at_zero(
        self, decrement_stock: DecrementStockUseCase, product_factory, uow: UnitOfWork
    ):
        # Given
        product = await product_factory(stock_quantity=3)

        # When
        results = await asyncio.gather(
            *(decrement_stock(product_id=product.id, quantity=1) for _ in range(5)),
            return_exceptions=True,
        )

        # Then
        applied = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, Exception)]
        assert len(applied) == 3
        assert len(rejected) == 2
        assert all(isinstance(e, InsufficientStock) for e in rejected)
        assert (await stock_of(uow, product.id)).stock_quantity == 0
