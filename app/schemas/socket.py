"""
Inbound WebSocket message payloads
"""

from typing import List, Literal, Optional, Union

from pydantic import AliasChoices, Field

from app.models.enums import OrderStatus
from app.schemas.common import CamelModel
from app.schemas.order import OrderItemIn

class JoinAdminMessage(CamelModel):
    token: Optional[str] = None

class JoinSessionMessage(CamelModel):
    session_id: Optional[str] = None
    role: Literal["admin", "customer"] = Field(
        "customer", validation_alias=AliasChoices("role", "userType")
    )
    token: Optional[str] = None

class OrderPlacedMessage(CamelModel):
    session_id: str = Field(..., min_length=1)
    items: List[OrderItemIn]
    customer_notes: Optional[str] = ""
    idempotency_key: Optional[str] = Field(None, max_length=128)

class ButtonClickedMessage(CamelModel):
    session_id: str
    button_id: Optional[Union[str, int]] = None
    button_label: Optional[str] = None

class ItemSelectedMessage(CamelModel):
    session_id: str
    item_id: Optional[Union[str, int]] = None
    item_name: Optional[str] = None
    selected: bool = True

class CustomerTypingMessage(CamelModel):
    session_id: str
    is_typing: bool = False

class UpdateOrderStatusMessage(CamelModel):
    order_id: str
    status: OrderStatus
    admin_notes: Optional[str] = None
    token: Optional[str] = None

class AdminMessageMessage(CamelModel):
    session_id: str
    message: str
