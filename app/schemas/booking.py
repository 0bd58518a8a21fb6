from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models import BookingStatus
from app.schemas.experience import ExperienceSummary


class BookingCreate(BaseModel):
    experience_id: UUID
    experience_date_id: UUID
    client_name: str = Field(min_length=2, max_length=200)
    client_email: EmailStr
    client_phone: str = Field(min_length=10, max_length=50)
    attendees: int = Field(ge=1, le=12)
    notes: str | None = Field(default=None, max_length=1000)


class BookingConfirm(BaseModel):
    """Manual confirmation by an admin, e.g. after an offline payment."""

    stripe_payment_id: str | None = None
    paid_amount: Decimal | None = Field(default=None, ge=0)


class BookingResponse(BaseModel):
    id: UUID
    experience_id: UUID
    experience_date_id: UUID
    client_name: str
    client_email: str
    client_phone: str
    attendees: int
    notes: str | None
    status: BookingStatus
    total_amount: Decimal
    paid_amount: Decimal
    stripe_payment_id: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingDateSummary(BaseModel):
    id: UUID
    start_date: datetime
    end_date: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingDetail(BookingResponse):
    experience: ExperienceSummary
    experience_date: BookingDateSummary


class BookingFilters(BaseModel):
    """Bind to a FastAPI route via Depends(BookingFilters)."""

    status: BookingStatus | None = None
    experience_id: UUID | None = None

    limit: int = Field(default=50, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class BookingPage(BaseModel):
    bookings: list[BookingDetail]
    total: int
    has_more: bool
