"""
Pydantic schemas package
"""

from .common import *
from .session import *
from .order import *
from .menu import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "CamelModel",
    "SessionCreate",
    "SessionUpdate",
    "SessionResponse",
    "OrderItemIn",
    "OrderCreate",
    "StatusUpdate",
    "OrderItemResponse",
    "OrderResponse",
    "EventResponse",
    "MenuItemCreate",
    "MenuItemUpdate",
    "MenuItemResponse",
]
