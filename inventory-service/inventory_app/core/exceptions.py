class StockAdjustmentError(Exception):
    def __init__(self, product_id: int, message: str):
        super().__init__(message)
        self.product_id = product_id


class ProductNotFound(StockAdjustmentError):
    def __init__(self, product_id: int):
        super().__init__(product_id, f"Product not found with id: {product_id}")


class InsufficientStock(StockAdjustmentError):
    def __init__(self, product_id: int, available: int, requested: int):
        super().__init__(
            product_id,
            f"Insufficient stock for product {product_id}. "
            f"Available: {available}, Requested: {requested}",
        )
        self.available = available
        self.requested = requested


class AdjustmentAlreadyApplied(StockAdjustmentError):
    """The (order, product) decrement was recorded by an earlier delivery."""

    def __init__(self, product_id: int, order_id: int, stock_quantity: int):
        super().__init__(
            product_id,
            f"Stock for product {product_id} already adjusted for order {order_id}",
        )
        self.order_id = order_id
        self.stock_quantity = stock_quantity
