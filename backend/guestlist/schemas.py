from pydantic import BaseModel, EmailStr, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Any, Optional, List
import datetime as dt


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _strip(value):
    return value.strip() if isinstance(value, str) else value


# ---------------------------------------------------------------- gigs

class GigCreate(CamelModel):
    date: dt.date
    dj_name: str = Field(min_length=1)
    venue_name: Optional[str] = None
    guest_cap: Optional[int] = Field(default=None, ge=0)
    max_per_signup: Optional[int] = Field(default=None, ge=1)

    @field_validator("dj_name", "venue_name", mode="before")
    @classmethod
    def strip_names(cls, value):
        return _strip(value)


class GigBatchItem(CamelModel):
    # Checked item by item before anything is written, so fields are optional here
    date: Optional[dt.date] = None
    dj_name: Optional[str] = None
    venue_name: Optional[str] = None
    guest_cap: Optional[int] = Field(default=None, ge=0)
    max_per_signup: Optional[int] = Field(default=None, ge=1)


class GigBatchCreate(CamelModel):
    gigs: List[GigBatchItem] = []


class GigUpdate(CamelModel):
    date: Optional[dt.date] = None
    dj_name: Optional[str] = Field(default=None, min_length=1)
    venue_name: Optional[str] = None
    guest_cap: Optional[int] = Field(default=None, ge=0)
    max_per_signup: Optional[int] = Field(default=None, ge=1)
    is_closed: Optional[bool] = None

    @field_validator("dj_name", "venue_name", mode="before")
    @classmethod
    def strip_names(cls, value):
        return _strip(value)


class GigResponse(CamelModel):
    id: int
    slug: str
    date: dt.date
    dj_name: str
    venue_name: Optional[str] = None
    guest_cap: Optional[int] = None
    max_per_signup: int
    is_closed: bool
    last_exported_at: Optional[dt.datetime] = None
    created_at: dt.datetime


class GigSummary(GigResponse):
    total_guests: int
    sign_up_count: int
    new_guest_count: int


class GigPublic(CamelModel):
    slug: str
    date: dt.date
    dj_name: str
    venue_name: Optional[str] = None
    guest_cap: Optional[int] = None
    max_per_signup: int
    is_closed: bool
    total_guests: int
    sign_up_count: int
    remaining: Optional[int] = None  # None = unlimited
    effective_max: int


class BatchCreateResponse(CamelModel):
    success: bool = True
    count: int
    gigs: List[GigResponse]


# -------------------------------------------------------------- guests

class GuestSignup(CamelModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    # Range and type are judged by the capacity rules, after the closed check
    quantity: Any = None

    @field_validator("name", "email", mode="before")
    @classmethod
    def strip_fields(cls, value):
        return _strip(value)


class GuestUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None, min_length=1)
    quantity: Optional[int] = None


class GuestResponse(CamelModel):
    id: int
    gig_id: int
    name: str
    email: str
    quantity: int
    created_at: dt.datetime


# ---------------------------------------------------------------- auth

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    success: bool = True
    email: str


class ResetPasswordRequest(BaseModel):
    email: str = Field(min_length=1)


class ResetPasswordConfirm(BaseModel):
    token: str = Field(min_length=1)
    password: str


class SuccessResponse(BaseModel):
    success: bool = True


# -------------------------------------------------------------- import

class ImportedEvent(CamelModel):
    id: str
    dj_name: str
    date: dt.date
    start: dt.datetime
    description: Optional[str] = None


class CalendarImportResponse(CamelModel):
    events: List[ImportedEvent]
    errors: List[str]
