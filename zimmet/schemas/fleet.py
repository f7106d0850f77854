from datetime import date, datetime
from typing import List, Optional
from enum import Enum

from pydantic import Field, field_validator

from .common import CamelModel, strip_or_none


# Enums
class AssignmentStatus(str, Enum):
    active = "active"
    returned = "returned"


# Vehicle Schemas
class VehicleBase(CamelModel):
    brand: str
    model: str
    year: int = Field(ge=1900, le=2100)
    plate: str
    type: str

    @field_validator("plate", mode="before")
    @classmethod
    def normalize_plate(cls, v):
        # "34 abc  123" and "34 ABC 123" are the same plate
        return " ".join(v.split()).upper() if isinstance(v, str) else v


class VehicleCreate(VehicleBase):
    inventory_items: List[int] = Field(default_factory=list)

    @field_validator("inventory_items", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return [] if v is None else v


class VehicleUpdate(CamelModel):
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = Field(default=None, ge=1900, le=2100)
    plate: Optional[str] = None
    type: Optional[str] = None
    inventory_items: Optional[List[int]] = None

    @field_validator("brand", "model", "type", mode="before")
    @classmethod
    def empty_str_to_none(cls, v):
        return strip_or_none(v)

    @field_validator("plate", mode="before")
    @classmethod
    def normalize_plate(cls, v):
        v = strip_or_none(v)
        return " ".join(v.split()).upper() if v else None


class VehicleResponse(VehicleBase):
    id: int
    inventory_items: List[int] = Field(default_factory=list)
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Assignment Schemas
class AssignmentCreate(CamelModel):
    vehicle_id: int
    personnel_id: int
    assign_date: date
    notes: Optional[str] = None

    @field_validator("notes", mode="before")
    @classmethod
    def empty_str_to_none(cls, v):
        return strip_or_none(v)


class AssignmentUpdate(CamelModel):
    vehicle_id: Optional[int] = None
    personnel_id: Optional[int] = None
    assign_date: Optional[date] = None
    notes: Optional[str] = None


class AssignmentReturn(CamelModel):
    return_date: date
    notes: Optional[str] = None

    @field_validator("notes", mode="before")
    @classmethod
    def empty_str_to_none(cls, v):
        return strip_or_none(v)


class AssignmentResponse(CamelModel):
    id: int
    vehicle_id: int
    personnel_id: int
    assign_date: date
    return_date: Optional[date] = None
    status: AssignmentStatus
    notes: Optional[str] = None
    inventory_items: List[int] = Field(default_factory=list)
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
