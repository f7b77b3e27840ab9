import logging

from inventory_app.core.exceptions import (
    AdjustmentAlreadyApplied,
    InsufficientStock,
    ProductNotFound,
)
from inventory_app.core.models import Product
from inventory_app.infrastructure.repositories import AppliedAdjustmentRepository
from inventory_app.infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class DecrementStockUseCase:
    """
    The only path that removes stock.

    The product row is locked for the whole read-check-write so concurrent
    consumers adjusting the same product are serialized, and the write itself
    only applies while enough stock is left. Stock never goes below zero: a
    decrement that would do so raises InsufficientStock and leaves the row
    untouched.

    With ``deduplicate`` off, repeating a call decrements again. With it on,
    a call carrying an ``order_id`` is recorded under (order_id, product_id)
    in the same transaction and a repeat raises AdjustmentAlreadyApplied.
    """

    def __init__(self, unit_of_work: UnitOfWork, deduplicate: bool = False):
        self._unit_of_work = unit_of_work
        self._deduplicate = deduplicate

    async def __call__(
        self, product_id: int, quantity: int, order_id: int | None = None
    ) -> Product:
        if quantity <= 0:
            raise ValueError(f"Quantity must be positive, got {quantity}")

        logger.info(
            f"Updating stock quantity for product id: {product_id} by quantity: {quantity}"
        )

        async with self._unit_of_work() as uow:
            product = await uow.products.get_for_update(product_id)
            if product is None:
                raise ProductNotFound(product_id)

            track = self._deduplicate and order_id is not None
            if track and await uow.applied_adjustments.exists(order_id, product_id):
                raise AdjustmentAlreadyApplied(
                    product_id, order_id, product.stock_quantity
                )

            if product.stock_quantity < quantity:
                raise InsufficientStock(
                    product_id, available=product.stock_quantity, requested=quantity
                )

            updated = await uow.products.decrement_stock(product_id, quantity)
            if updated is None:
                # Lost a race with another consumer since the read above.
                current = await uow.products.get_by_id(product_id)
                raise InsufficientStock(
                    product_id, available=current.stock_quantity, requested=quantity
                )

            if track:
                await uow.applied_adjustments.create(
                    AppliedAdjustmentRepository.CreateDTO(
                        order_id=order_id, product_id=product_id, quantity=quantity
                    )
                )
            await uow.commit()

        logger.info(
            f"Stock updated for product: {updated.name}. "
            f"New stock: {updated.stock_quantity}"
        )
        return updated
