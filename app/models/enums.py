"""
Enumerations shared by models, schemas and services
"""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EventType(str, Enum):
    ORDER_PLACED = "orderPlaced"
    BUTTON_CLICKED = "buttonClicked"
    ITEM_SELECTED = "itemSelected"
    CUSTOMER_TYPING = "customerTyping"
    UPDATE_ORDER_STATUS = "updateOrderStatus"
    ADMIN_MESSAGE = "adminMessage"
    STATUS_UPDATED = "statusUpdated"
    ADMIN_EVENT = "adminEvent"
