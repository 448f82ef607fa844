"""
Orders captured by the sales agent. The owner is identified by the
X-User-Id header.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from app.dependencies import get_order_service
from app.errors import OrderValidationError
from app.models.order_models import OrderCreate, OrderStatus, OrderStatusUpdate
from app.services.order_service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai-orders")


@router.post("", status_code=201)
def create_order(
    body: OrderCreate,
    user_id: str = Header(alias="X-User-Id"),
    orders: OrderService = Depends(get_order_service),
):
    try:
        order = orders.create_order(user_id, body)
    except OrderValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return order.model_dump(mode="json")


@router.get("")
def list_orders(
    page_id: Optional[str] = None,
    status: Optional[OrderStatus] = None,
    limit: int = 50,
    user_id: str = Header(alias="X-User-Id"),
    orders: OrderService = Depends(get_order_service),
):
    return [order.model_dump(mode="json") for order in orders.list_orders(user_id, page_id, status, limit)]


@router.patch("/{order_id}/status")
def update_order_status(
    order_id: str,
    body: OrderStatusUpdate,
    user_id: str = Header(alias="X-User-Id"),
    orders: OrderService = Depends(get_order_service),
):
    order = orders.update_status(user_id, order_id, body.status)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    logger.info("Order %s status -> %s", order_id, body.status.value)
    return order.model_dump(mode="json")
