from decimal import Decimal
from typing import Awaitable, Callable

from pydantic import BaseModel


class ProductQuote(BaseModel):
    product_name: str
    unit_price: Decimal


PriceLookup = Callable[[int], Awaitable[ProductQuote]]


class StaticPriceLookup:
    """
    Price source used until the order service talks to a real catalog.

    Every product costs ``default_price`` unless listed in ``prices``.
    """

    def __init__(
        self,
        prices: dict[int, Decimal | str] | None = None,
        default_price: Decimal | str = "10.00",
    ):
        self._prices = {
            int(product_id): Decimal(str(price))
            for product_id, price in (prices or {}).items()
        }
        self._default_price = Decimal(str(default_price))

    async def __call__(self, product_id: int) -> ProductQuote:
        return ProductQuote(
            product_name=f"Product {product_id}",
            unit_price=self._prices.get(product_id, self._default_price),
        )
