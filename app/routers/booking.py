from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from app.cache import invalidate_availability_cache
from app.crud import booking_crud
from app.crud.booking import VALID_TRANSITIONS, TransitionOutcome, TransitionResult
from app.deps import CurrentUser, EmailService, can_manage_bookings, get_email_service
from app.errors import CapacityExceeded
from app.logger import admin_log, booking_log
from app.models import BookingStatus
from app.ratelimit import general_limiter
from app.schemas import BookingConfirm, BookingCreate, BookingDetail, BookingFilters, BookingPage
from app.services.email import send_quietly

router = APIRouter(prefix="/bookings", tags=["bookings"])


# ---------------------------------------------------------------------------
# Transition guard helpers
# ---------------------------------------------------------------------------


def _raise_for_outcome(result: TransitionResult, target: BookingStatus) -> BookingDetail:
    """
    Map a lifecycle result to HTTP for the admin endpoints:
      not found            -> 404
      invalid or repeated  -> 400
      over capacity        -> 409 with available_spots
    """
    if result.outcome == TransitionOutcome.NOT_FOUND:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found"
        )
    if result.outcome in (TransitionOutcome.INVALID_TRANSITION, TransitionOutcome.UNCHANGED):
        allowed = VALID_TRANSITIONS.get(result.previous_status, set())
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Cannot transition from '{result.previous_status}' to '{target}'. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            ),
        )
    if result.outcome == TransitionOutcome.CAPACITY_EXCEEDED:
        raise CapacityExceeded(
            available_spots=result.available_spots or 0,
            status_code=status.HTTP_409_CONFLICT,
            detail="Confirming this booking would exceed the date capacity",
        )
    return result.booking  # type: ignore


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=BookingDetail,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(general_limiter)],
)
async def create_booking(payload: BookingCreate) -> BookingDetail:
    booking = await booking_crud.create_booking(payload)
    booking_log.info(
        "Booking {} created: experience={} date={} attendees={} total={}",
        booking.id,
        booking.experience_id,
        booking.experience_date_id,
        booking.attendees,
        booking.total_amount,
    )
    return booking


@router.get("", response_model=BookingPage)
async def list_bookings(
    filters: BookingFilters = Depends(),
    _: CurrentUser = Depends(can_manage_bookings),
) -> BookingPage:
    return await booking_crud.list_bookings(filters)


@router.get("/{booking_id}", response_model=BookingDetail)
async def get_booking(booking_id: UUID) -> BookingDetail:
    """The booking id is the capability; no authentication."""
    booking = await booking_crud.get_booking(booking_id)
    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found"
        )
    return booking


@router.put("/{booking_id}/confirm", response_model=BookingDetail)
async def confirm_booking(
    booking_id: UUID,
    payload: BookingConfirm | None = None,
    current_user: CurrentUser = Depends(can_manage_bookings),
    email_service: EmailService = Depends(get_email_service),
) -> BookingDetail:
    payload = payload or BookingConfirm()
    result = await booking_crud.confirm_booking(
        booking_id,
        paid_amount=payload.paid_amount,
        stripe_payment_id=payload.stripe_payment_id,
    )
    booking = _raise_for_outcome(result, BookingStatus.CONFIRMED)

    await invalidate_availability_cache(booking.experience_date_id)
    admin_log.info("Booking {} confirmed manually by {}", booking.id, current_user.email)

    # Delivery failure never undoes the confirmation
    await send_quietly(email_service.send_booking_confirmation, booking)
    return booking


@router.put("/{booking_id}/cancel", response_model=BookingDetail)
async def cancel_booking(
    booking_id: UUID,
    current_user: CurrentUser = Depends(can_manage_bookings),
) -> BookingDetail:
    result = await booking_crud.cancel_booking(booking_id)
    booking = _raise_for_outcome(result, BookingStatus.CANCELLED)

    await invalidate_availability_cache(booking.experience_date_id)
    admin_log.info(
        "Booking {} cancelled by {} (was {})",
        booking.id,
        current_user.email,
        result.previous_status,
    )
    return booking
