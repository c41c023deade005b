from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from libs.redis_common.models import Order
from services.order_service.app.api.models import CreateOrderRequest, OrderStatusUpdate, UpdateOrderRequest
from services.order_service.order_repository import (
    FindAllPage,
    InsertFailed,
    OrderNotFound,
    OrderRepositoryError,
    RedisOrderRepository,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_repository(request: Request) -> RedisOrderRepository:
    """
    Returns the repository created by the app lifespan in app/main.py.
    Tests override this dependency.
    """
    repository = getattr(request.app.state, "repository", None)
    if repository is None:
        raise RuntimeError("OrderRepository dependency is not configured")
    return repository


def _order_body(order: Order) -> dict:
    return order.model_dump(mode="json", by_alias=True)


@router.post("/orders", status_code=201)
async def create_order(request: CreateOrderRequest, repo: RedisOrderRepository = Depends(get_repository)):
    order = Order(
        order_id=request.order_id,
        customer_id=request.customer_id,
        line_items=request.line_items,
        created_at=datetime.now(timezone.utc),
    )
    try:
        await repo.insert(order)
    except InsertFailed as e:
        raise HTTPException(status_code=409, detail=str(e))
    except OrderRepositoryError as e:
        logger.error("Failed to insert order %s: %s", order.order_id, e)
        raise HTTPException(status_code=500, detail=str(e))
    return _order_body(order)


@router.get("/orders")
async def list_orders(
    cursor: int = Query(0, ge=0),
    size: int = Query(50, ge=1, le=1000),
    repo: RedisOrderRepository = Depends(get_repository),
):
    try:
        result = await repo.find_all(FindAllPage(size=size, offset=cursor))
    except OrderRepositoryError as e:
        logger.error("Failed to list orders: %s", e)
        raise HTTPException(status_code=500, detail=str(e))
    return {
        "items": [_order_body(order) for order in result.orders],
        "next": result.cursor,
    }


@router.get("/orders/{order_id}")
async def get_order(order_id: int, repo: RedisOrderRepository = Depends(get_repository)):
    try:
        order = await repo.find_by_id(order_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OrderRepositoryError as e:
        logger.error("Failed to get order %s: %s", order_id, e)
        raise HTTPException(status_code=500, detail=str(e))
    return _order_body(order)


@router.put("/orders/{order_id}")
async def update_order(order_id: int, request: UpdateOrderRequest, repo: RedisOrderRepository = Depends(get_repository)):
    try:
        order = await repo.find_by_id(order_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OrderRepositoryError as e:
        logger.error("Failed to get order %s: %s", order_id, e)
        raise HTTPException(status_code=500, detail=str(e))

    now = datetime.now(timezone.utc)
    if request.status == OrderStatusUpdate.SHIPPED:
        if order.shipped_at is not None:
            raise HTTPException(status_code=409, detail="order already shipped")
        order.shipped_at = now
    elif request.status == OrderStatusUpdate.COMPLETED:
        if order.completed_at is not None or order.shipped_at is None:
            raise HTTPException(status_code=409, detail="order must be shipped and not yet completed")
        order.completed_at = now

    try:
        await repo.update(order)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OrderRepositoryError as e:
        logger.error("Failed to update order %s: %s", order_id, e)
        raise HTTPException(status_code=500, detail=str(e))
    return _order_body(order)


@router.delete("/orders/{order_id}", status_code=204)
async def delete_order(order_id: int, repo: RedisOrderRepository = Depends(get_repository)):
    try:
        await repo.delete_by_id(order_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OrderRepositoryError as e:
        logger.error("Failed to delete order %s: %s", order_id, e)
        raise HTTPException(status_code=500, detail=str(e))
    return Response(status_code=204)
