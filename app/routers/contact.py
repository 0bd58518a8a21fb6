from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from app.crud import contact_crud
from app.deps import CurrentUser, EmailService, can_read_contacts, get_email_service
from app.ratelimit import contact_limiter
from app.schemas import ContactCreate, ContactCreated, ContactFilters, ContactPage, ContactResponse
from app.services.email import send_quietly

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post(
    "",
    response_model=ContactCreated,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(contact_limiter)],
)
async def submit_contact(
    payload: ContactCreate,
    email_service: EmailService = Depends(get_email_service),
) -> ContactCreated:
    contact = await contact_crud.create(payload)
    logger.info("Contact form {} received: type={}", contact.id, contact.type)

    await send_quietly(email_service.send_contact_notification, payload)
    return ContactCreated(message="Message sent successfully", id=contact.id)


@router.get("", response_model=ContactPage)
async def list_contacts(
    filters: ContactFilters = Depends(),
    _: CurrentUser = Depends(can_read_contacts),
) -> ContactPage:
    return await contact_crud.list_contacts(filters)


@router.put(
    "/{contact_id}/read",
    response_model=ContactResponse,
    dependencies=[Depends(can_read_contacts)],
)
async def mark_contact_read(contact_id: UUID) -> ContactResponse:
    contact = await contact_crud.mark_read(contact_id)
    if not contact:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found"
        )
    return contact
