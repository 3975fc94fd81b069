"""
Database models package
"""

from .session import TableSession
from .order import Order, OrderItem
from .event import Event
from .menu_item import MenuItem
from .enums import OrderStatus, EventType

__all__ = ["TableSession", "Order", "OrderItem", "Event", "MenuItem", "OrderStatus", "EventType"]
