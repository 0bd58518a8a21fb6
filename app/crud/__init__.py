from app.crud.blog import category_crud, post_crud
from app.crud.booking import booking_crud
from app.crud.contact import contact_crud
from app.crud.dashboard import get_dashboard
from app.crud.experience import experience_crud, experience_date_crud, testimonial_crud
from app.crud.user import user_crud

__all__ = [
    "booking_crud",
    "category_crud",
    "contact_crud",
    "experience_crud",
    "experience_date_crud",
    "get_dashboard",
    "post_crud",
    "testimonial_crud",
    "user_crud",
]
