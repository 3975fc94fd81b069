"""
Menu catalog schemas
"""

from typing import Optional
from pydantic import Field, field_validator

from app.schemas.common import CamelModel

class MenuItemCreate(CamelModel):
    name: str = Field(..., min_length=1)
    price: float = Field(0, ge=0)
    description: Optional[str] = None
    available: bool = True

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Product name is required and must be a non-empty string")
        return value

class MenuItemUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    available: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Product name must be a non-empty string")
        return value

class MenuItemResponse(CamelModel):
    id: str
    name: str
    price: float
    description: Optional[str] = None
    available: bool
