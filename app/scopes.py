from enum import StrEnum

from app.models import UserRole


class Scope(StrEnum):
    # Any authenticated account
    PROFILE = "profile"  # read own account, manage own 2FA

    # Admin scopes
    ADMIN = "admin"
    ADMIN_BOOKINGS = "admin:bookings"  # list / confirm / cancel bookings
    ADMIN_PAYMENTS = "admin:payments"  # refunds
    ADMIN_CONTENT = "admin:content"  # experiences, dates, posts, testimonials
    ADMIN_CONTACT = "admin:contact"  # read contact submissions


SCOPE_DESCRIPTIONS: dict[str, str] = {
    Scope.PROFILE: "Read your account and manage two-factor authentication.",
    Scope.ADMIN: "Full administrative access.",
    Scope.ADMIN_BOOKINGS: "List, confirm and cancel any booking.",
    Scope.ADMIN_PAYMENTS: "Issue refunds through the payment processor.",
    Scope.ADMIN_CONTENT: "Manage experiences, dates, blog posts and testimonials.",
    Scope.ADMIN_CONTACT: "Read and mark contact form submissions.",
}

ROLE_SCOPES: dict[UserRole, list[str]] = {
    UserRole.CLIENT: [Scope.PROFILE],
    UserRole.ADMIN: [
        Scope.PROFILE,
        Scope.ADMIN,
        Scope.ADMIN_BOOKINGS,
        Scope.ADMIN_PAYMENTS,
        Scope.ADMIN_CONTENT,
        Scope.ADMIN_CONTACT,
    ],
}


def scopes_for_role(role: UserRole) -> list[str]:
    return [str(s) for s in ROLE_SCOPES.get(role, [])]
