from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from uuid import UUID

from fastapi import HTTPException, status
from tortoise.transactions import in_transaction

from app.db import CRUD
from app.errors import CapacityExceeded
from app.models import Booking, BookingStatus, Experience, ExperienceDate, ProcessedWebhookEvent
from app.schemas import BookingCreate, BookingDetail, BookingFilters, BookingPage, BookingResponse

VALID_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: set(),
    BookingStatus.COMPLETED: set(),
}


class TransitionOutcome(StrEnum):
    APPLIED = "applied"
    UNCHANGED = "unchanged"  # already in the target status
    DUPLICATE_EVENT = "duplicate_event"  # webhook event seen before
    NOT_FOUND = "not_found"
    INVALID_TRANSITION = "invalid_transition"
    CAPACITY_EXCEEDED = "capacity_exceeded"


@dataclass
class TransitionResult:
    outcome: TransitionOutcome
    booking: BookingDetail | None = None
    previous_status: BookingStatus | None = None
    available_spots: int | None = None


def remaining_spots(max_attendees: int, confirmed_attendees: int) -> int:
    return max(max_attendees - confirmed_attendees, 0)


def compute_total(price_per_person: Decimal, attendees: int) -> Decimal:
    return (price_per_person * attendees).quantize(Decimal("0.01"))


class BookingCRUD(CRUD[Booking, BookingResponse]):  # type: ignore
    async def confirmed_attendees(self, experience_date_id: UUID) -> int:
        """Sum of attendees over CONFIRMED bookings for a date."""
        attendees = await Booking.filter(
            experience_date_id=experience_date_id,
            status=BookingStatus.CONFIRMED,
        ).values_list("attendees", flat=True)
        return sum(attendees)

    async def available_spots(self, experience_date: ExperienceDate) -> int:
        confirmed = await self.confirmed_attendees(experience_date.id)
        return remaining_spots(experience_date.max_attendees, confirmed)

    async def _detail(self, inst: Booking) -> BookingDetail:
        await inst.fetch_related("experience", "experience_date")
        return BookingDetail.model_validate(inst, from_attributes=True)

    async def create_booking(self, payload: BookingCreate) -> BookingDetail:
        """
        Persist a PENDING booking after validating, under a row lock on the date:
          - the date exists, belongs to the experience and is active
          - confirmed attendees + requested attendees <= max_attendees
        """
        experience = await Experience.get_or_none(id=payload.experience_id)
        if experience is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Experience not found"
            )

        # Atomic check-then-insert: SELECT FOR UPDATE serializes bookings per date
        async with in_transaction():
            experience_date = (
                await ExperienceDate.filter(
                    id=payload.experience_date_id, experience_id=experience.id
                )
                .select_for_update()
                .first()
            )
            if experience_date is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Experience date not found",
                )
            if not experience_date.is_active:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Experience date not available",
                )

            available = await self.available_spots(experience_date)
            if available < payload.attendees:
                raise CapacityExceeded(available_spots=available)

            price_per_person = experience_date.price or experience.price
            inst = await Booking.create(
                experience_id=experience.id,
                experience_date_id=experience_date.id,
                client_name=payload.client_name,
                client_email=payload.client_email,
                client_phone=payload.client_phone,
                attendees=payload.attendees,
                notes=payload.notes,
                total_amount=compute_total(price_per_person, payload.attendees),
            )

        return await self._detail(inst)

    async def get_booking(self, booking_id: UUID) -> BookingDetail | None:
        inst = await Booking.get_or_none(id=booking_id)
        if not inst:
            return None
        return await self._detail(inst)

    async def list_bookings(self, filters: BookingFilters) -> BookingPage:
        qs = Booking.all()
        if filters.status is not None:
            qs = qs.filter(status=filters.status)
        if filters.experience_id is not None:
            qs = qs.filter(experience_id=filters.experience_id)

        total = await qs.count()
        bookings = (
            await qs.order_by("-created_at")
            .offset(filters.offset)
            .limit(filters.limit)
            .prefetch_related("experience", "experience_date")
        )
        return BookingPage(
            bookings=[
                BookingDetail.model_validate(b, from_attributes=True) for b in bookings
            ],
            total=total,
            has_more=filters.offset + filters.limit < total,
        )

    async def confirm_booking(
        self,
        booking_id: UUID,
        paid_amount: Decimal | None = None,
        stripe_payment_id: str | None = None,
        event_id: str | None = None,
        event_type: str | None = None,
    ) -> TransitionResult:
        """
        Move a booking to CONFIRMED.

        Runs in one transaction holding row locks on the booking and its date,
        and re-checks capacity so confirmed attendees never exceed the date's
        maximum. When `event_id` is given the event is recorded in the same
        transaction; an event id seen before is not processed again.
        """
        async with in_transaction():
            if (
                event_id is not None
                and await ProcessedWebhookEvent.filter(event_id=event_id).exists()
            ):
                return TransitionResult(TransitionOutcome.DUPLICATE_EVENT)

            result = await self._confirm_locked(booking_id, paid_amount, stripe_payment_id)

            if event_id is not None:
                await ProcessedWebhookEvent.create(
                    event_id=event_id,
                    event_type=event_type or "",
                    booking_id=booking_id,
                )

        return result

    async def _confirm_locked(
        self,
        booking_id: UUID,
        paid_amount: Decimal | None,
        stripe_payment_id: str | None,
    ) -> TransitionResult:
        inst = await Booking.filter(id=booking_id).select_for_update().first()
        if inst is None:
            return TransitionResult(TransitionOutcome.NOT_FOUND)

        previous = BookingStatus(inst.status)
        if previous == BookingStatus.CONFIRMED:
            return TransitionResult(
                TransitionOutcome.UNCHANGED,
                booking=await self._detail(inst),
                previous_status=previous,
            )
        if BookingStatus.CONFIRMED not in VALID_TRANSITIONS[previous]:
            return TransitionResult(
                TransitionOutcome.INVALID_TRANSITION,
                booking=await self._detail(inst),
                previous_status=previous,
            )

        experience_date = (
            await ExperienceDate.filter(id=inst.experience_date_id)
            .select_for_update()
            .first()
        )
        available = await self.available_spots(experience_date)
        if inst.attendees > available:
            return TransitionResult(
                TransitionOutcome.CAPACITY_EXCEEDED,
                booking=await self._detail(inst),
                previous_status=previous,
                available_spots=available,
            )

        inst.status = BookingStatus.CONFIRMED  # type: ignore
        update_fields = ["status", "updated_at"]
        if paid_amount is not None:
            inst.paid_amount = paid_amount  # type: ignore
            update_fields.append("paid_amount")
        if stripe_payment_id is not None:
            inst.stripe_payment_id = stripe_payment_id
            update_fields.append("stripe_payment_id")
        await inst.save(update_fields=update_fields)

        return TransitionResult(
            TransitionOutcome.APPLIED,
            booking=await self._detail(inst),
            previous_status=previous,
        )

    async def cancel_booking(self, booking_id: UUID) -> TransitionResult:
        async with in_transaction():
            inst = await Booking.filter(id=booking_id).select_for_update().first()
            if inst is None:
                return TransitionResult(TransitionOutcome.NOT_FOUND)

            previous = BookingStatus(inst.status)
            if previous == BookingStatus.CANCELLED:
                return TransitionResult(
                    TransitionOutcome.UNCHANGED,
                    booking=await self._detail(inst),
                    previous_status=previous,
                )
            if BookingStatus.CANCELLED not in VALID_TRANSITIONS[previous]:
                return TransitionResult(
                    TransitionOutcome.INVALID_TRANSITION,
                    booking=await self._detail(inst),
                    previous_status=previous,
                )

            inst.status = BookingStatus.CANCELLED  # type: ignore
            await inst.save(update_fields=["status", "updated_at"])

        return TransitionResult(
            TransitionOutcome.APPLIED,
            booking=await self._detail(inst),
            previous_status=previous,
        )


booking_crud = BookingCRUD(Booking, BookingResponse)
