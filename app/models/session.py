"""
Table session model
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.utils.clock import utcnow

class TableSession(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String(36), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    table_number = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # No relationship to events: they outlive the session
    orders = relationship(
        "Order",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
