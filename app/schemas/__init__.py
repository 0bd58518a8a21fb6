from app.schemas.admin import DashboardResponse, PopularExperience
from app.schemas.auth import (
    BackupCodeRequest,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    SuccessResponse,
    TokenResponse,
    TwoFactorCode,
    TwoFactorEnableResponse,
    TwoFactorSetupResponse,
    UserResponse,
)
from app.schemas.blog import (
    CategoryResponse,
    CategorySummary,
    PostCreate,
    PostFilters,
    PostPage,
    PostResponse,
)
from app.schemas.booking import (
    BookingConfirm,
    BookingCreate,
    BookingDateSummary,
    BookingDetail,
    BookingFilters,
    BookingPage,
    BookingResponse,
)
from app.schemas.contact import (
    ContactCreate,
    ContactCreated,
    ContactFilters,
    ContactPage,
    ContactResponse,
)
from app.schemas.experience import (
    AdminExperience,
    ExperienceCreate,
    ExperienceDateAvailability,
    ExperienceDateCreate,
    ExperienceDateResponse,
    ExperienceDateUpdate,
    ExperienceDetail,
    ExperienceFilters,
    ExperienceListItem,
    ExperienceResponse,
    ExperienceSummary,
    TestimonialCreate,
    TestimonialResponse,
    TestimonialWithExperience,
)
from app.schemas.payment import (
    PaymentIntentCreate,
    PaymentIntentResponse,
    PaymentStatusResponse,
    RefundCreate,
    RefundResponse,
    WebhookAck,
)

__all__ = [
    "AdminExperience",
    "BackupCodeRequest",
    "BookingConfirm",
    "BookingCreate",
    "BookingDateSummary",
    "BookingDetail",
    "BookingFilters",
    "BookingPage",
    "BookingResponse",
    "CategoryResponse",
    "CategorySummary",
    "ContactCreate",
    "ContactCreated",
    "ContactFilters",
    "ContactPage",
    "ContactResponse",
    "DashboardResponse",
    "ExperienceCreate",
    "ExperienceDateAvailability",
    "ExperienceDateCreate",
    "ExperienceDateResponse",
    "ExperienceDateUpdate",
    "ExperienceDetail",
    "ExperienceFilters",
    "ExperienceListItem",
    "ExperienceResponse",
    "ExperienceSummary",
    "LoginRequest",
    "PaymentIntentCreate",
    "PaymentIntentResponse",
    "PaymentStatusResponse",
    "PopularExperience",
    "PostCreate",
    "PostFilters",
    "PostPage",
    "PostResponse",
    "RefundCreate",
    "RefundResponse",
    "RegisterRequest",
    "RegisterResponse",
    "SuccessResponse",
    "TestimonialCreate",
    "TestimonialResponse",
    "TestimonialWithExperience",
    "TokenResponse",
    "TwoFactorCode",
    "TwoFactorEnableResponse",
    "TwoFactorSetupResponse",
    "UserResponse",
    "WebhookAck",
]
