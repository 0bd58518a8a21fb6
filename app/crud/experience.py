from __future__ import annotations

from collections import Counter, defaultdict
from datetime import datetime, timezone
from uuid import UUID

from fastapi import HTTPException, status
from tortoise.exceptions import IntegrityError
from tortoise.transactions import in_transaction

from app.cache import get_availability_cache, set_availability_cache
from app.crud.booking import booking_crud, remaining_spots
from app.db import CRUD
from app.errors import CapacityExceeded
from app.models import (
    Booking,
    Experience,
    ExperienceCategory,
    ExperienceDate,
    Testimonial,
)
from app.schemas import (
    AdminExperience,
    ExperienceCreate,
    ExperienceDateAvailability,
    ExperienceDateCreate,
    ExperienceDateResponse,
    ExperienceDateUpdate,
    ExperienceDetail,
    ExperienceFilters,
    ExperienceListItem,
    ExperienceResponse,
    TestimonialCreate,
    TestimonialResponse,
    TestimonialWithExperience,
)

LATEST_TESTIMONIALS = 10
CATEGORY_DATES_PER_EXPERIENCE = 3


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


async def _upcoming_dates(experience_ids: list[UUID]) -> dict[UUID, list[ExperienceDate]]:
    now = datetime.now(timezone.utc)
    dates = await ExperienceDate.filter(
        experience_id__in=experience_ids, is_active=True, start_date__gte=now
    ).order_by("start_date")
    grouped: dict[UUID, list[ExperienceDate]] = defaultdict(list)
    for d in dates:
        grouped[d.experience_id].append(d)  # type: ignore
    return grouped


async def _testimonial_counts(experience_ids: list[UUID], active_only: bool = True) -> Counter:
    qs = Testimonial.filter(experience_id__in=experience_ids)
    if active_only:
        qs = qs.filter(is_active=True)
    return Counter(await qs.values_list("experience_id", flat=True))


class ExperienceCRUD(CRUD[Experience, ExperienceResponse]):  # type: ignore
    # ------------------------------------------------------------------
    # Public catalogue
    # ------------------------------------------------------------------

    async def _list_items(
        self, experiences: list[Experience], dates_per_experience: int | None = None
    ) -> list[ExperienceListItem]:
        ids = [e.id for e in experiences]
        dates = await _upcoming_dates(ids)
        counts = await _testimonial_counts(ids)
        return [
            ExperienceListItem(
                **self.to_schema(e).model_dump(),
                dates=[
                    ExperienceDateResponse.model_validate(d)
                    for d in dates[e.id][:dates_per_experience]
                ],
                testimonial_count=counts[e.id],
            )
            for e in experiences
        ]

    async def list_public(self, filters: ExperienceFilters) -> list[ExperienceListItem]:
        qs = Experience.filter(is_active=True)
        if filters.category is not None:
            qs = qs.filter(category=filters.category)
        if filters.difficulty is not None:
            qs = qs.filter(difficulty=filters.difficulty)
        experiences = await qs.order_by("-created_at").offset(filters.offset).limit(filters.limit)
        return await self._list_items(experiences)

    async def list_by_category(self, category: str) -> list[ExperienceListItem]:
        try:
            category = ExperienceCategory(category)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid category"
            ) from None
        experiences = await Experience.filter(is_active=True, category=category).order_by(
            "-created_at"
        )
        return await self._list_items(
            experiences, dates_per_experience=CATEGORY_DATES_PER_EXPERIENCE
        )

    async def date_availability(self, experience_date: ExperienceDate) -> int:
        """Remaining spots for display; served from Redis when cached."""
        cached = await get_availability_cache(experience_date.id)
        if cached is not None:
            return cached
        available = await booking_crud.available_spots(experience_date)
        await set_availability_cache(experience_date.id, available)
        return available

    async def get_detail(self, slug: str) -> ExperienceDetail | None:
        experience = await Experience.get_or_none(slug=slug, is_active=True)
        if experience is None:
            return None

        dates = (await _upcoming_dates([experience.id]))[experience.id]
        availability = []
        for d in dates:
            spots = await self.date_availability(d)
            availability.append(
                ExperienceDateAvailability(
                    **ExperienceDateResponse.model_validate(d).model_dump(),
                    available_spots=spots,
                    is_available=spots > 0,
                )
            )

        testimonials = (
            await Testimonial.filter(experience_id=experience.id, is_active=True)
            .order_by("-created_at")
            .limit(LATEST_TESTIMONIALS)
        )
        return ExperienceDetail(
            **self.to_schema(experience).model_dump(),
            dates=availability,
            testimonials=[TestimonialResponse.model_validate(t) for t in testimonials],
        )

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    async def list_admin(self) -> list[AdminExperience]:
        experiences = await Experience.all().order_by("-created_at")
        ids = [e.id for e in experiences]

        dates: dict[UUID, list[ExperienceDate]] = defaultdict(list)
        for d in await ExperienceDate.filter(experience_id__in=ids).order_by("start_date"):
            dates[d.experience_id].append(d)  # type: ignore
        bookings = Counter(
            await Booking.filter(experience_id__in=ids).values_list("experience_id", flat=True)
        )
        testimonials = await _testimonial_counts(ids, active_only=False)

        return [
            AdminExperience(
                **self.to_schema(e).model_dump(),
                dates=[ExperienceDateResponse.model_validate(d) for d in dates[e.id]],
                booking_count=bookings[e.id],
                testimonial_count=testimonials[e.id],
            )
            for e in experiences
        ]

    async def create_experience(self, payload: ExperienceCreate) -> ExperienceResponse:
        try:
            return await self.create(payload)
        except IntegrityError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Slug already in use"
            ) from None

    async def replace_experience(
        self, experience_id: UUID, payload: ExperienceCreate
    ) -> ExperienceResponse | None:
        try:
            return await self.update_by(payload.model_dump(), id=experience_id)
        except IntegrityError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Slug already in use"
            ) from None

    async def delete_experience(self, experience_id: UUID) -> bool:
        if await Booking.filter(experience_id=experience_id).exists():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Experience has bookings and cannot be deleted",
            )
        return await self.delete_by(id=experience_id)


class ExperienceDateCRUD(CRUD[ExperienceDate, ExperienceDateResponse]):  # type: ignore
    async def create_date(self, payload: ExperienceDateCreate) -> ExperienceDateResponse:
        if not await Experience.filter(id=payload.experience_id).exists():
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Experience not found"
            )
        return await self.create(payload)

    async def update_date(
        self, date_id: UUID, payload: ExperienceDateUpdate
    ) -> ExperienceDateResponse | None:
        """
        Partial update. Shrinking max_attendees below the attendees already
        CONFIRMED is refused with 409; the date row is locked so a concurrent
        confirmation sees either the old or the new maximum.
        """
        async with in_transaction():
            inst = await ExperienceDate.filter(id=date_id).select_for_update().first()
            if inst is None:
                return None

            data = payload.model_dump(exclude_unset=True)
            start = _aware(data.get("start_date", inst.start_date))
            end = _aware(data.get("end_date", inst.end_date))
            if end < start:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="end_date must not be before start_date",
                )

            if "max_attendees" in data:
                confirmed = await booking_crud.confirmed_attendees(inst.id)
                if data["max_attendees"] < confirmed:
                    raise CapacityExceeded(
                        available_spots=remaining_spots(inst.max_attendees, confirmed),
                        status_code=status.HTTP_409_CONFLICT,
                        detail="max_attendees is below the attendees already confirmed",
                        confirmed_attendees=confirmed,
                    )

            inst.update_from_dict(data)
            await inst.save()
        return self.to_schema(inst)

    async def delete_date(self, date_id: UUID) -> bool:
        if await Booking.filter(experience_date_id=date_id).exists():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Experience date has bookings and cannot be deleted",
            )
        return await self.delete_by(id=date_id)


class TestimonialCRUD(CRUD[Testimonial, TestimonialResponse]):  # type: ignore
    async def list_all(self) -> list[TestimonialWithExperience]:
        testimonials = await Testimonial.all().order_by("-created_at").prefetch_related(
            "experience"
        )
        return [TestimonialWithExperience.model_validate(t) for t in testimonials]

    async def _check_experience(self, experience_id: UUID | None) -> None:
        if experience_id is not None and not await Experience.filter(id=experience_id).exists():
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Experience not found"
            )

    async def create_testimonial(self, payload: TestimonialCreate) -> TestimonialResponse:
        await self._check_experience(payload.experience_id)
        return await self.create(payload)

    async def update_testimonial(
        self, testimonial_id: UUID, payload: TestimonialCreate
    ) -> TestimonialResponse | None:
        if not await Testimonial.filter(id=testimonial_id).exists():
            return None
        await self._check_experience(payload.experience_id)
        return await self.update_by(payload.model_dump(), id=testimonial_id)


experience_crud = ExperienceCRUD(Experience, ExperienceResponse)
experience_date_crud = ExperienceDateCRUD(ExperienceDate, ExperienceDateResponse)
testimonial_crud = TestimonialCRUD(Testimonial, TestimonialResponse)
