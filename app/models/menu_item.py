"""
Menu catalog model
"""

from sqlalchemy import Column, String, Float, Boolean, DateTime, Text

from app.core.db import Base
from app.utils.clock import utcnow

class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    price = Column(Float, default=0, nullable=False)
    description = Column(Text, nullable=True)
    available = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
