from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models import ContactType


class ContactCreate(BaseModel):
    type: ContactType
    name: str = Field(min_length=2, max_length=200)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=50)
    message: str = Field(min_length=10, max_length=5000)

    # CUSTOM_GUIDE requests
    date_range: str | None = Field(default=None, max_length=200)
    mountain_type: str | None = Field(default=None, max_length=200)
    experience: str | None = Field(default=None, max_length=200)
    budget: str | None = Field(default=None, max_length=100)


class ContactResponse(BaseModel):
    id: UUID
    type: ContactType
    name: str
    email: str
    phone: str | None
    message: str
    date_range: str | None
    mountain_type: str | None
    experience: str | None
    budget: str | None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ContactCreated(BaseModel):
    message: str
    id: UUID


class ContactFilters(BaseModel):
    """Bind to a FastAPI route via Depends(ContactFilters)."""

    type: ContactType | None = None
    is_read: bool | None = None

    limit: int = Field(default=50, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class ContactPage(BaseModel):
    contacts: list[ContactResponse]
    total: int
    has_more: bool
