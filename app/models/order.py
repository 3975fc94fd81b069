"""
Order and order item models
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.models.enums import OrderStatus
from app.utils.clock import utcnow

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(36), unique=True, nullable=False, index=True)
    session_id = Column(
        String(36),
        ForeignKey("sessions.session_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status = Column(String(20), default=OrderStatus.PENDING.value, nullable=False, index=True)
    total_amount = Column(Float, default=0, nullable=False)
    customer_notes = Column(Text, default="", nullable=False)
    admin_notes = Column(Text, default="", nullable=False)
    idempotency_key = Column(String(128), unique=True, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    session = relationship("TableSession", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderItem.id",
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(
        String(36),
        ForeignKey("orders.order_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_name = Column(String(255), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    price = Column(Float, default=0, nullable=False)
    notes = Column(Text, default="", nullable=False)

    order = relationship("Order", back_populates="items")
