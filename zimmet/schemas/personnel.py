from datetime import date, datetime
from typing import Optional

from pydantic import field_validator

from .common import CamelModel, strip_or_none


class PersonnelBase(CamelModel):
    name: str
    surname: str
    email: str
    phone: str
    department: str
    position: str
    start_date: date

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class PersonnelCreate(PersonnelBase):
    pass


class PersonnelUpdate(CamelModel):
    name: Optional[str] = None
    surname: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    start_date: Optional[date] = None

    @field_validator("name", "surname", "email", "phone", "department", "position", mode="before")
    @classmethod
    def empty_str_to_none(cls, v):
        return strip_or_none(v)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower() if v else v


class PersonnelResponse(PersonnelBase):
    id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
