"""
Common Pydantic schemas
"""

from typing import Any, Optional
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

class StandardResponse(BaseModel):
    """Standard API response"""
    success: bool
    message: str
    data: Optional[Any] = None

class ErrorResponse(BaseModel):
    """Error response schema"""
    success: bool = False
    message: str
    error_code: Optional[str] = None
    details: Optional[Any] = None

class CamelModel(BaseModel):
    """Base for payloads exchanged with the browser clients (camelCase on the wire)"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
