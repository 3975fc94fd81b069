"""
Order API routes - REST mirror of the WebSocket order events
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header

from app.api.deps import get_order_service
from app.schemas.order import OrderCreate, StatusUpdate
from app.services.order_service import OrderService
from app.utils.responses import success_response
from app.utils.security import verify_admin_token

router = APIRouter()

@router.post("/create")
async def create_order(
    order_data: OrderCreate,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    orders: OrderService = Depends(get_order_service)
):
    """Place an order for a session; retries with the same key return the first order"""
    if idempotency_key and not order_data.idempotency_key:
        order_data = order_data.model_copy(update={"idempotency_key": idempotency_key})

    placement = await orders.create_order(order_data)

    if placement.replayed:
        return success_response(message="Order already placed", data=placement.order)
    return success_response(message="Order placed successfully", data=placement.order, status_code=201)

@router.get("/all")
async def list_recent_orders(orders: OrderService = Depends(get_order_service)):
    """Most recent orders across all sessions (admin view)"""
    return success_response(
        message="Orders retrieved successfully",
        data=await orders.list_recent_orders()
    )

@router.get("/session/{session_id}")
async def list_session_orders(session_id: str, orders: OrderService = Depends(get_order_service)):
    """All orders for a session, newest first"""
    return success_response(
        message="Orders retrieved successfully",
        data=await orders.list_session_orders(session_id)
    )

@router.get("/events/{session_id}")
async def list_session_events(session_id: str, orders: OrderService = Depends(get_order_service)):
    """Recent audit events for a session, newest first"""
    return success_response(
        message="Events retrieved successfully",
        data=await orders.list_session_events(session_id)
    )

@router.get("/{order_id}")
async def get_order(order_id: str, orders: OrderService = Depends(get_order_service)):
    return success_response(
        message="Order retrieved successfully",
        data=await orders.get_order(order_id)
    )

@router.put("/{order_id}/status")
async def update_order_status(
    order_id: str,
    status_update: StatusUpdate,
    orders: OrderService = Depends(get_order_service),
    token: Optional[str] = Depends(verify_admin_token)
):
    """Change an order's status and notify the session and the dashboards"""
    order = await orders.update_status(order_id, status_update.status, status_update.admin_notes)
    return success_response(message="Order status updated", data=order)
