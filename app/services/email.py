"""
Transactional e-mail through Resend, rendered from Jinja2 templates.

Every send raises on failure. Callers that must not be blocked by e-mail
(booking confirmation, contact form) catch and log.
"""

import asyncio
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Awaitable, Callable

import resend
from jinja2 import Environment, FileSystemLoader, select_autoescape
from loguru import logger

from app import settings
from app.schemas import BookingDetail, ContactCreate

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "emails"


class EmailNotConfigured(RuntimeError):
    pass


def _html_to_text(html: str) -> str:
    text = re.sub(r"<[^>]+>", "", html)
    return re.sub(r"\s+", " ", text).strip()


class EmailService:
    def __init__(self, api_key: str, sender: str, admin_email: str):
        self.api_key = api_key
        self.sender = sender
        self.admin_email = admin_email
        self.env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            autoescape=select_autoescape(["html"]),
        )

    def render(self, template_name: str, **context: Any) -> str:
        return self.env.get_template(template_name).render(**context)

    async def send(self, to: str, subject: str, html: str) -> Any:
        if not self.api_key:
            raise EmailNotConfigured("Resend API key not configured")

        resend.api_key = self.api_key
        params = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html,
            "text": _html_to_text(html),
        }
        response = await asyncio.to_thread(resend.Emails.send, params)
        logger.info("Email sent to {} - subject: {}", to, subject)
        return response

    async def send_booking_confirmation(self, booking: BookingDetail) -> Any:
        html = self.render("booking_confirmation.html", booking=booking)
        return await self.send(
            booking.client_email,
            f"Reserva confirmada - {booking.experience.title}",
            html,
        )

    async def send_contact_notification(self, contact: ContactCreate) -> Any:
        html = self.render("contact_notification.html", contact=contact)
        subject = (
            "Nueva solicitud de guía personalizado"
            if contact.type == "CUSTOM_GUIDE"
            else "Nuevo mensaje de contacto"
        )
        return await self.send(self.admin_email, f"{subject} - {contact.name}", html)


async def send_quietly(send: Callable[..., Awaitable[Any]], *args: Any) -> bool:
    """Run an e-mail send, logging any failure instead of raising it."""
    try:
        await send(*args)
    except Exception:
        logger.opt(exception=True).error(
            "Email delivery failed: {}", getattr(send, "__name__", send)
        )
        return False
    return True


@lru_cache(maxsize=1)
def get_email_service() -> EmailService:
    return EmailService(
        api_key=settings.RESEND_API_KEY,
        sender=settings.EMAIL_FROM,
        admin_email=settings.ADMIN_EMAIL,
    )
