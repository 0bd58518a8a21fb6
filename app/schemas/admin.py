from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from app.schemas.booking import BookingDetail


class PopularExperience(BaseModel):
    id: UUID
    title: str
    slug: str
    booking_count: int


class DashboardResponse(BaseModel):
    total_experiences: int
    total_bookings: int
    total_revenue: Decimal
    pending_bookings: int
    recent_bookings: list[BookingDetail]
    popular_experiences: list[PopularExperience]
