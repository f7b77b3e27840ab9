from datetime import datetime
from http import HTTPStatus

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from inventory_app.application.container import ApplicationContainer
from inventory_app.infrastructure.repositories import DoesNotExist
from inventory_app.infrastructure.unit_of_work import UnitOfWork

router = APIRouter()


class StockResponseModel(BaseModel):
    product_id: int
    stock_quantity: int
    updated_at: datetime


@router.get(
    "/products/{product_id}/stock",
    status_code=HTTPStatus.OK,
    response_model=StockResponseModel,
)
@inject
async def get_stock(
    product_id: int,
    unit_of_work: UnitOfWork = Depends(
        Provide[ApplicationContainer.infrastructure_container.unit_of_work]
    ),
):
    try:
        async with unit_of_work() as uow:
            product = await uow.products.get_by_id(product_id)
    except DoesNotExist:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND, detail=f"Product {product_id} not found"
        )
    except Exception as e:
        return JSONResponse(
            content={"message": f"Internal server error: {str(e)}"},
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        )

    return StockResponseModel(
        product_id=product.id,
        stock_quantity=product.stock_quantity,
        updated_at=product.updated_at,
    )
