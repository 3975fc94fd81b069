"""
Append-only event log model
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON

from app.core.db import Base
from app.utils.clock import utcnow

class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Not a foreign key: rows stay queryable after their session is deleted
    session_id = Column(String(36), nullable=False, index=True)
    event_type = Column(String(50), nullable=False)
    order_id = Column(String(36), nullable=True)
    data = Column(JSON, nullable=False, default=dict)
    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)
