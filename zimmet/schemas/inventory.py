from datetime import date, datetime
from typing import Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from .common import CamelModel, strip_or_none


class StockMovementType(str, Enum):
    stock_in = "in"
    stock_out = "out"


class InventoryItemBase(CamelModel):
    name: str
    category: str
    brand: str
    model: str
    serial_number: str
    purchase_date: date
    value: float = Field(ge=0)
    quantity: int = Field(default=1, ge=0)


class InventoryItemCreate(InventoryItemBase):
    @field_validator("quantity", mode="before")
    @classmethod
    def default_quantity(cls, v):
        # Forms send null when the field is left blank
        return 1 if v is None else v


class InventoryItemUpdate(CamelModel):
    name: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    purchase_date: Optional[date] = None
    value: Optional[float] = Field(default=None, ge=0)
    quantity: Optional[int] = Field(default=None, ge=0)

    @field_validator("name", "category", "brand", "model", "serial_number", mode="before")
    @classmethod
    def empty_str_to_none(cls, v):
        return strip_or_none(v)


class InventoryItemResponse(CamelModel):
    id: int
    name: str
    category: str
    brand: str
    model: str
    serial_number: str
    purchase_date: date
    value: float
    quantity: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Stock movements keep the ledger's snake_case field names on the wire
class StockMovementCreate(BaseModel):
    product_id: int
    type: StockMovementType
    quantity: int = Field(gt=0)
    reason: Optional[str] = None
    reference_number: Optional[str] = None

    @field_validator("reason", "reference_number", mode="before")
    @classmethod
    def empty_str_to_none(cls, v):
        return strip_or_none(v)


class StockMovementResponse(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    type: StockMovementType
    quantity: int
    reason: Optional[str] = None
    reference_number: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
