from enum import StrEnum

from tortoise import fields

from app.db import AbstractModel as Model


class ExperienceCategory(StrEnum):
    INICIACION = "INICIACION"
    FORMACION = "FORMACION"
    EXPEDICION = "EXPEDICION"


class Difficulty(StrEnum):
    PRINCIPIANTE = "PRINCIPIANTE"
    INTERMEDIO = "INTERMEDIO"
    AVANZADO = "AVANZADO"
    EXPERTO = "EXPERTO"


class BookingStatus(StrEnum):
    PENDING = "PENDING"  # created by the client, awaiting payment
    CONFIRMED = "CONFIRMED"  # paid (webhook) or confirmed by an admin
    CANCELLED = "CANCELLED"  # cancelled by an admin
    COMPLETED = "COMPLETED"  # experience took place


class UserRole(StrEnum):
    CLIENT = "CLIENT"
    ADMIN = "ADMIN"


class ContactType(StrEnum):
    GENERAL = "GENERAL"
    CUSTOM_GUIDE = "CUSTOM_GUIDE"


class Experience(Model):
    title = fields.CharField(max_length=200)
    slug = fields.CharField(max_length=200, unique=True)
    description = fields.TextField()
    content = fields.TextField()
    category = fields.CharEnumField(ExperienceCategory)
    difficulty = fields.CharEnumField(Difficulty)
    duration = fields.CharField(max_length=100)
    price = fields.DecimalField(max_digits=10, decimal_places=2)  # per person
    includes = fields.JSONField(default=list)
    excludes = fields.JSONField(default=list)
    images = fields.JSONField(default=list)
    video_url = fields.CharField(max_length=500, null=True)
    is_active = fields.BooleanField(default=True)
    updated_at = fields.DatetimeField(auto_now=True)

    dates: fields.ReverseRelation["ExperienceDate"]
    testimonials: fields.ReverseRelation["Testimonial"]
    bookings: fields.ReverseRelation["Booking"]

    class Meta:  # type: ignore
        table = "experiences"
        ordering = ["-created_at"]


class ExperienceDate(Model):
    experience: fields.ForeignKeyRelation[Experience] = fields.ForeignKeyField(
        "models.Experience", related_name="dates", on_delete=fields.CASCADE
    )
    start_date = fields.DatetimeField()
    end_date = fields.DatetimeField()
    max_attendees = fields.IntField()
    price = fields.DecimalField(
        max_digits=10, decimal_places=2, null=True
    )  # overrides Experience.price when set
    is_active = fields.BooleanField(default=True)
    updated_at = fields.DatetimeField(auto_now=True)

    bookings: fields.ReverseRelation["Booking"]

    class Meta:  # type: ignore
        table = "experience_dates"
        ordering = ["start_date"]


class Testimonial(Model):
    experience: fields.ForeignKeyNullableRelation[Experience] = fields.ForeignKeyField(
        "models.Experience",
        related_name="testimonials",
        null=True,
        on_delete=fields.SET_NULL,
    )
    name = fields.CharField(max_length=200)
    content = fields.TextField()
    rating = fields.IntField()
    image_url = fields.CharField(max_length=500, null=True)
    is_active = fields.BooleanField(default=True)

    class Meta:  # type: ignore
        table = "testimonials"
        ordering = ["-created_at"]


class Booking(Model):
    experience: fields.ForeignKeyRelation[Experience] = fields.ForeignKeyField(
        "models.Experience", related_name="bookings", on_delete=fields.RESTRICT
    )
    experience_date: fields.ForeignKeyRelation[ExperienceDate] = (
        fields.ForeignKeyField(
            "models.ExperienceDate", related_name="bookings", on_delete=fields.RESTRICT
        )
    )

    client_name = fields.CharField(max_length=200)
    client_email = fields.CharField(max_length=254)
    client_phone = fields.CharField(max_length=50)
    attendees = fields.IntField()
    notes = fields.TextField(null=True)

    status = fields.CharEnumField(BookingStatus, default=BookingStatus.PENDING)
    total_amount = fields.DecimalField(max_digits=10, decimal_places=2)  # computed
    paid_amount = fields.DecimalField(max_digits=10, decimal_places=2, default=0)
    stripe_payment_id = fields.CharField(max_length=255, null=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:  # type: ignore
        table = "bookings"
        ordering = ["-created_at"]


class ProcessedWebhookEvent(Model):
    """Stripe events already applied; makes webhook re-delivery a no-op."""

    event_id = fields.CharField(max_length=255, unique=True)
    event_type = fields.CharField(max_length=100)
    booking_id = fields.UUIDField(null=True)

    class Meta:  # type: ignore
        table = "processed_webhook_events"


class User(Model):
    name = fields.CharField(max_length=200)
    email = fields.CharField(max_length=254, unique=True)
    password_hash = fields.CharField(max_length=255)
    role = fields.CharEnumField(UserRole, default=UserRole.CLIENT)

    two_factor_enabled = fields.BooleanField(default=False)
    two_factor_secret = fields.TextField(null=True)  # Fernet-encrypted
    backup_codes = fields.JSONField(default=list)  # hashed

    class Meta:  # type: ignore
        table = "users"


class Category(Model):
    name = fields.CharField(max_length=100)
    slug = fields.CharField(max_length=100, unique=True)

    posts: fields.ReverseRelation["Post"]

    class Meta:  # type: ignore
        table = "categories"
        ordering = ["name"]


class Post(Model):
    title = fields.CharField(max_length=200)
    slug = fields.CharField(max_length=200, unique=True)
    content = fields.TextField()
    excerpt = fields.TextField()
    cover_image = fields.CharField(max_length=500, null=True)
    category: fields.ForeignKeyNullableRelation[Category] = fields.ForeignKeyField(
        "models.Category", related_name="posts", null=True, on_delete=fields.SET_NULL
    )
    is_published = fields.BooleanField(default=False)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:  # type: ignore
        table = "posts"
        ordering = ["-created_at"]


class ContactForm(Model):
    type = fields.CharEnumField(ContactType)
    name = fields.CharField(max_length=200)
    email = fields.CharField(max_length=254)
    phone = fields.CharField(max_length=50, null=True)
    message = fields.TextField()

    # Custom-guide requests only
    date_range = fields.CharField(max_length=200, null=True)
    mountain_type = fields.CharField(max_length=200, null=True)
    experience = fields.CharField(max_length=200, null=True)
    budget = fields.CharField(max_length=100, null=True)

    is_read = fields.BooleanField(default=False)

    class Meta:  # type: ignore
        table = "contact_forms"
        ordering = ["-created_at"]
