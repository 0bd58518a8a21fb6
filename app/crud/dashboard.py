from collections import Counter
from decimal import Decimal

from app.models import Booking, BookingStatus, Experience
from app.schemas import BookingDetail, DashboardResponse, PopularExperience

RECENT_BOOKINGS = 5
POPULAR_EXPERIENCES = 5


async def get_dashboard() -> DashboardResponse:
    total_experiences = await Experience.all().count()
    total_bookings = await Booking.all().count()
    pending_bookings = await Booking.filter(status=BookingStatus.PENDING).count()

    paid = await Booking.filter(status=BookingStatus.CONFIRMED).values_list(
        "paid_amount", flat=True
    )
    total_revenue = sum((Decimal(p) for p in paid), Decimal("0"))

    recent = (
        await Booking.all()
        .order_by("-created_at")
        .limit(RECENT_BOOKINGS)
        .prefetch_related("experience", "experience_date")
    )

    per_experience = Counter(await Booking.all().values_list("experience_id", flat=True))
    top = per_experience.most_common(POPULAR_EXPERIENCES)
    experiences = {
        e.id: e for e in await Experience.filter(id__in=[exp_id for exp_id, _ in top])
    }
    popular = [
        PopularExperience(
            id=exp_id,
            title=experiences[exp_id].title,
            slug=experiences[exp_id].slug,
            booking_count=count,
        )
        for exp_id, count in top
        if exp_id in experiences
    ]

    return DashboardResponse(
        total_experiences=total_experiences,
        total_bookings=total_bookings,
        pending_bookings=pending_bookings,
        total_revenue=total_revenue,
        recent_bookings=[BookingDetail.model_validate(b) for b in recent],
        popular_experiences=popular,
    )
