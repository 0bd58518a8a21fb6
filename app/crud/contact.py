from uuid import UUID

from app.db import CRUD
from app.models import ContactForm
from app.schemas import ContactFilters, ContactPage, ContactResponse


class ContactCRUD(CRUD[ContactForm, ContactResponse]):  # type: ignore
    async def list_contacts(self, filters: ContactFilters) -> ContactPage:
        qs = ContactForm.all()
        if filters.type is not None:
            qs = qs.filter(type=filters.type)
        if filters.is_read is not None:
            qs = qs.filter(is_read=filters.is_read)

        total = await qs.count()
        contacts = await qs.order_by("-created_at").offset(filters.offset).limit(filters.limit)
        return ContactPage(
            contacts=[self.to_schema(c) for c in contacts],
            total=total,
            has_more=filters.offset + filters.limit < total,
        )

    async def mark_read(self, contact_id: UUID) -> ContactResponse | None:
        return await self.update_by({"is_read": True}, id=contact_id)


contact_crud = ContactCRUD(ContactForm, ContactResponse)
