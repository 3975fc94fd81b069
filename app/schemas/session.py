"""
Session-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional

from pydantic import field_validator

from app.schemas.common import CamelModel

class SessionCreate(CamelModel):
    """Schema for creating a session"""
    name: Optional[str] = None
    table_number: Optional[str] = None

class SessionUpdate(CamelModel):
    """Partial update; only fields present in the request body are applied.

    An explicit ``tableNumber: null`` clears the table number, while ``name``
    and ``isActive`` ignore nulls because the columns are not nullable.
    """
    name: Optional[str] = None
    table_number: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Session name must be a non-empty string")
        return value

class SessionResponse(CamelModel):
    session_id: str
    name: str
    table_number: Optional[str] = None
    is_active: bool
    customer_url: str
    created_at: datetime
    updated_at: datetime
