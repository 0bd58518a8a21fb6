from uuid import UUID

import stripe
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from tortoise.exceptions import BaseORMException

from app.cache import invalidate_availability_cache
from app.crud import booking_crud
from app.crud.booking import TransitionOutcome
from app.deps import (
    CurrentUser,
    EmailService,
    StripeGateway,
    can_refund_payments,
    get_email_service,
    get_stripe_gateway,
)
from app.logger import payment_log
from app.models import BookingStatus
from app.ratelimit import payment_limiter
from app.schemas import (
    PaymentIntentCreate,
    PaymentIntentResponse,
    PaymentStatusResponse,
    RefundCreate,
    RefundResponse,
    WebhookAck,
)
from app.services.email import send_quietly
from app.services.payments import from_minor_units

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post(
    "/create-intent",
    response_model=PaymentIntentResponse,
    dependencies=[Depends(payment_limiter)],
)
async def create_payment_intent(
    payload: PaymentIntentCreate,
    gateway: StripeGateway = Depends(get_stripe_gateway),
) -> PaymentIntentResponse:
    booking = await booking_crud.get_booking(payload.booking_id)
    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found"
        )
    if booking.status != BookingStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Booking is not pending payment",
        )
    if payload.amount > booking.total_amount:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Amount exceeds the booking total",
        )

    try:
        intent = await gateway.create_payment_intent(
            amount=payload.amount,
            metadata={
                "booking_id": str(booking.id),
                "experience_title": booking.experience.title,
                "client_email": booking.client_email,
            },
            description=f"Anticipo para {booking.experience.title} - {booking.client_name}",
        )
    except stripe.StripeError:
        payment_log.opt(exception=True).error(
            "Payment intent creation failed for booking {}", booking.id
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error creating payment",
        ) from None

    payment_log.info(
        "Payment intent {} created for booking {}: amount={}",
        intent.id,
        booking.id,
        payload.amount,
    )
    return PaymentIntentResponse(
        client_secret=intent.client_secret, payment_intent_id=intent.id
    )


# ---------------------------------------------------------------------------
# Webhook
# ---------------------------------------------------------------------------


async def _handle_payment_succeeded(
    event_id: str,
    event_type: str,
    intent: dict,
    email_service: EmailService,
) -> WebhookAck | JSONResponse:
    raw_booking_id = (intent.get("metadata") or {}).get("booking_id")
    try:
        booking_id = UUID(raw_booking_id)
    except (TypeError, ValueError):
        payment_log.error(
            "Payment intent {} has no valid booking_id in metadata", intent.get("id")
        )
        return WebhookAck()

    try:
        result = await booking_crud.confirm_booking(
            booking_id,
            paid_amount=from_minor_units(intent.get("amount", 0)),
            stripe_payment_id=intent.get("id"),
            event_id=event_id,
            event_type=event_type,
        )
    except BaseORMException:
        # Stripe re-delivers on 5xx; the processed-event record makes that safe
        payment_log.opt(exception=True).error(
            "Webhook {} failed for booking {}", event_id, booking_id
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Webhook processing failed"},
        )

    outcome = result.outcome
    if outcome == TransitionOutcome.DUPLICATE_EVENT:
        payment_log.info("Webhook event {} already processed", event_id)
        return WebhookAck(duplicate=True)

    if outcome == TransitionOutcome.NOT_FOUND:
        payment_log.error("Payment for unknown booking {}", booking_id)
    elif outcome == TransitionOutcome.UNCHANGED:
        payment_log.info("Booking {} already confirmed", booking_id)
    elif outcome == TransitionOutcome.INVALID_TRANSITION:
        payment_log.warning(
            "Payment received for booking {} in status {}, refund manually",
            booking_id,
            result.previous_status,
        )
    elif outcome == TransitionOutcome.CAPACITY_EXCEEDED:
        payment_log.error(
            "Booking {} paid but the date is full ({} spots left), "
            "left PENDING for manual refund",
            booking_id,
            result.available_spots,
        )
    else:
        booking = result.booking
        payment_log.info(
            "Booking {} confirmed by payment {}: paid={}",
            booking.id,
            booking.stripe_payment_id,
            booking.paid_amount,
        )
        await invalidate_availability_cache(booking.experience_date_id)
        await send_quietly(email_service.send_booking_confirmation, booking)

    return WebhookAck()


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None),
    gateway: StripeGateway = Depends(get_stripe_gateway),
    email_service: EmailService = Depends(get_email_service),
):
    if not stripe_signature:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing Stripe-Signature header",
        )

    body = await request.body()
    try:
        event = gateway.construct_event(body, stripe_signature)
    except (ValueError, stripe.SignatureVerificationError) as exc:
        payment_log.warning("Webhook signature verification failed: {}", exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Webhook signature verification failed",
        ) from None

    event_id = event.get("id", "")
    event_type = event.get("type", "")
    intent = (event.get("data") or {}).get("object") or {}

    if event_type == "payment_intent.succeeded":
        return await _handle_payment_succeeded(event_id, event_type, intent, email_service)

    if event_type == "payment_intent.payment_failed":
        error = intent.get("last_payment_error") or {}
        payment_log.warning(
            "Payment failed for intent {}: {}", intent.get("id"), error.get("message")
        )
    else:
        payment_log.info("Unhandled webhook event type {}", event_type)
    return WebhookAck()


# ---------------------------------------------------------------------------
# Status and refunds
# ---------------------------------------------------------------------------


@router.get("/status/{payment_intent_id}", response_model=PaymentStatusResponse)
async def get_payment_status(
    payment_intent_id: str,
    gateway: StripeGateway = Depends(get_stripe_gateway),
) -> PaymentStatusResponse:
    try:
        intent = await gateway.retrieve_payment_intent(payment_intent_id)
    except stripe.StripeError:
        payment_log.opt(exception=True).error(
            "Could not retrieve payment intent {}", payment_intent_id
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error retrieving payment status",
        ) from None

    return PaymentStatusResponse(
        status=intent.status,
        amount=from_minor_units(intent.amount),
        currency=intent.currency,
        booking_id=getattr(intent.metadata, "booking_id", None),
    )


@router.post("/refund", response_model=RefundResponse)
async def create_refund(
    payload: RefundCreate,
    current_user: CurrentUser = Depends(can_refund_payments),
    gateway: StripeGateway = Depends(get_stripe_gateway),
) -> RefundResponse:
    try:
        refund = await gateway.create_refund(
            payload.payment_intent_id, payload.amount, payload.reason
        )
    except stripe.StripeError:
        payment_log.opt(exception=True).error(
            "Refund failed for payment intent {}", payload.payment_intent_id
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error processing refund",
        ) from None

    payment_log.info(
        "Refund {} for {} issued by {}: amount={}",
        refund.id,
        payload.payment_intent_id,
        current_user.email,
        refund.amount,
    )
    return RefundResponse(
        refund_id=refund.id,
        status=refund.status,
        amount=from_minor_units(refund.amount),
    )
