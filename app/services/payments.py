"""
Stripe bridge.

The stripe SDK is synchronous, so every call runs in a worker thread.
Errors from the processor propagate; callers turn them into HTTP 500.
"""

import asyncio
import json
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Any

import stripe

from app import settings


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> Decimal:
    return (Decimal(amount) / 100).quantize(Decimal("0.01"))


class StripeGateway:
    def __init__(self, api_key: str, webhook_secret: str, currency: str):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.currency = currency

    async def create_payment_intent(
        self,
        amount: Decimal,
        metadata: dict[str, str],
        description: str,
    ) -> Any:
        return await asyncio.to_thread(
            stripe.PaymentIntent.create,
            amount=to_minor_units(amount),
            currency=self.currency,
            metadata=metadata,
            description=description,
            api_key=self.api_key,
        )

    async def retrieve_payment_intent(self, payment_intent_id: str) -> Any:
        return await asyncio.to_thread(
            stripe.PaymentIntent.retrieve, payment_intent_id, api_key=self.api_key
        )

    async def create_refund(
        self,
        payment_intent_id: str,
        amount: Decimal | None,
        reason: str,
    ) -> Any:
        params: dict[str, Any] = {
            "payment_intent": payment_intent_id,
            "reason": reason,
            "api_key": self.api_key,
        }
        if amount is not None:
            params["amount"] = to_minor_units(amount)  # partial refund
        return await asyncio.to_thread(stripe.Refund.create, **params)

    def construct_event(self, payload: bytes, signature: str) -> dict:
        """
        Verify the Stripe-Signature header and return the event as a plain dict.
        Raises ValueError for a malformed payload and
        stripe.SignatureVerificationError for a bad signature.
        """
        stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        return json.loads(payload)


@lru_cache(maxsize=1)
def get_stripe_gateway() -> StripeGateway:
    return StripeGateway(
        api_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        currency=settings.STRIPE_CURRENCY,
    )
