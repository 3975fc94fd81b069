"""
Order-related Pydantic schemas
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from app.models.enums import OrderStatus
from app.schemas.common import CamelModel

class OrderItemIn(CamelModel):
    """Item as submitted by a customer; missing price/quantity default to 0/1"""
    item_name: str = Field(..., min_length=1)
    quantity: Optional[int] = Field(1, ge=1)
    price: Optional[float] = Field(0, ge=0)
    notes: Optional[str] = ""

class OrderCreate(CamelModel):
    """Schema for placing an order"""
    session_id: str = Field(..., min_length=1)
    items: List[OrderItemIn]
    customer_notes: Optional[str] = ""
    idempotency_key: Optional[str] = Field(None, max_length=128)

class StatusUpdate(CamelModel):
    """Schema for changing an order's status"""
    status: OrderStatus
    admin_notes: Optional[str] = None

class OrderItemResponse(CamelModel):
    item_name: str
    quantity: int
    price: float
    notes: str = ""

class OrderResponse(CamelModel):
    order_id: str
    session_id: str
    status: OrderStatus
    items: List[OrderItemResponse]
    total_amount: float
    customer_notes: str = ""
    admin_notes: str = ""
    created_at: datetime
    updated_at: datetime

class EventResponse(CamelModel):
    id: int
    session_id: str
    event_type: str
    order_id: Optional[str] = None
    data: Dict[str, Any] = {}
    timestamp: datetime
