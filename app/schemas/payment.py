from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field


class PaymentIntentCreate(BaseModel):
    booking_id: UUID
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)


class PaymentIntentResponse(BaseModel):
    client_secret: str
    payment_intent_id: str


class PaymentStatusResponse(BaseModel):
    status: str
    amount: Decimal
    currency: str
    booking_id: str | None


class RefundCreate(BaseModel):
    payment_intent_id: str
    amount: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    reason: Literal["duplicate", "fraudulent", "requested_by_customer"] = (
        "requested_by_customer"
    )


class RefundResponse(BaseModel):
    refund_id: str
    status: str
    amount: Decimal


class WebhookAck(BaseModel):
    received: bool = True
    duplicate: bool = False
