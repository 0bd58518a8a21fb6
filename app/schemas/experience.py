from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models import Difficulty, ExperienceCategory


class ExperienceCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    slug: str = Field(min_length=1, max_length=200, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str = Field(min_length=1)
    content: str = Field(min_length=1)
    category: ExperienceCategory
    difficulty: Difficulty
    duration: str = Field(min_length=1, max_length=100)
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    includes: list[str] = Field(default_factory=list)
    excludes: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    video_url: str | None = None
    is_active: bool = True


class ExperienceResponse(BaseModel):
    id: UUID
    title: str
    slug: str
    description: str
    content: str
    category: ExperienceCategory
    difficulty: Difficulty
    duration: str
    price: Decimal
    includes: list[str]
    excludes: list[str]
    images: list[str]
    video_url: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ExperienceSummary(BaseModel):
    """Embedded in bookings and testimonials."""

    id: UUID
    title: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


def _utc(v: datetime) -> datetime:
    if v.tzinfo is None:
        raise ValueError("datetime must be timezone-aware (include UTC offset)")
    return v.astimezone(timezone.utc)


class ExperienceDateCreate(BaseModel):
    experience_id: UUID
    start_date: datetime
    end_date: datetime
    max_attendees: int = Field(gt=0)
    price: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    is_active: bool = True

    @field_validator("start_date", "end_date", mode="after")
    @classmethod
    def require_timezone(cls, v: datetime) -> datetime:
        return _utc(v)

    @model_validator(mode="after")
    def validate_range(self) -> ExperienceDateCreate:
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ExperienceDateUpdate(BaseModel):
    """Partial update, only fields present in the body are written."""

    start_date: datetime | None = None
    end_date: datetime | None = None
    max_attendees: int | None = Field(default=None, gt=0)
    price: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    is_active: bool | None = None

    @field_validator("start_date", "end_date", mode="after")
    @classmethod
    def require_timezone(cls, v: datetime | None) -> datetime | None:
        return _utc(v) if v is not None else None

    @model_validator(mode="after")
    def validate_range(self) -> ExperienceDateUpdate:
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ExperienceDateResponse(BaseModel):
    id: UUID
    experience_id: UUID
    start_date: datetime
    end_date: datetime
    max_attendees: int
    price: Decimal | None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class ExperienceDateAvailability(ExperienceDateResponse):
    available_spots: int
    is_available: bool


class TestimonialCreate(BaseModel):
    experience_id: UUID | None = None
    name: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)
    image_url: str | None = None
    is_active: bool = True


class TestimonialResponse(BaseModel):
    id: UUID
    experience_id: UUID | None
    name: str
    content: str
    rating: int
    image_url: str | None
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TestimonialWithExperience(TestimonialResponse):
    experience: ExperienceSummary | None = None


class ExperienceListItem(ExperienceResponse):
    dates: list[ExperienceDateResponse]
    testimonial_count: int


class ExperienceDetail(ExperienceResponse):
    dates: list[ExperienceDateAvailability]
    testimonials: list[TestimonialResponse]


class AdminExperience(ExperienceResponse):
    dates: list[ExperienceDateResponse]
    booking_count: int
    testimonial_count: int


class ExperienceFilters(BaseModel):
    """Bind to a FastAPI route via Depends(ExperienceFilters)."""

    category: ExperienceCategory | None = None
    difficulty: Difficulty | None = None

    limit: int = Field(default=50, ge=1, le=100)
    offset: int = Field(default=0, ge=0)
