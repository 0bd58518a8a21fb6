from dataclasses import dataclass, field
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.models import User
from app.scopes import Scope
from app.security import decode_access_token
from app.services.email import EmailService, get_email_service
from app.services.payments import StripeGateway, get_stripe_gateway
from app.services.two_factor import TwoFactorService, get_two_factor_service

__all__ = [
    "CurrentUser",
    "EmailService",
    "StripeGateway",
    "TwoFactorService",
    "can_manage_bookings",
    "can_manage_content",
    "can_read_contacts",
    "can_refund_payments",
    "get_account",
    "get_current_user",
    "get_email_service",
    "get_stripe_gateway",
    "get_two_factor_service",
    "require_admin",
    "require_scopes",
]

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    id: UUID
    email: str
    scopes: list[str] = field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return Scope.ADMIN in self.scopes


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> CurrentUser:
    """
    Resolve the caller from the bearer JWT. The token is self-contained:
    identity and scopes come from its claims, no DB round trip.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = UUID(payload["sub"])
    except (KeyError, ValueError, TypeError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        ) from None

    return CurrentUser(
        id=user_id,
        email=payload.get("email", ""),
        scopes=list(payload.get("scopes", [])),
    )


async def get_account(
    current_user: CurrentUser = Depends(get_current_user),
) -> User:
    """The caller's persisted account, for profile and 2FA routes."""
    user = await User.get_or_none(id=current_user.id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="User not found"
        )
    return user


def require_scopes(*required: str):
    """
    Factory that returns a dependency enforcing one or more scopes.
    The `admin` scope satisfies every requirement.

    Usage:
        @router.get("/protected")
        async def route(user = Depends(require_scopes(Scope.ADMIN_BOOKINGS))):
            ...
    """

    async def _dep(
        current_user: CurrentUser = Depends(get_current_user),
    ) -> CurrentUser:
        if current_user.is_admin:
            return current_user
        missing = [s for s in required if s not in current_user.scopes]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing required scopes: {', '.join(missing)}",
            )
        return current_user

    return _dep


async def require_admin(
    current_user: CurrentUser = Depends(require_scopes(Scope.ADMIN)),
) -> CurrentUser:
    """Shorthand for admin-only endpoints."""
    return current_user


# ---------------------------------------------------------------------------
# Pre-built scope dependencies
# ---------------------------------------------------------------------------

can_manage_bookings = require_scopes(Scope.ADMIN_BOOKINGS)
can_refund_payments = require_scopes(Scope.ADMIN_PAYMENTS)
can_manage_content = require_scopes(Scope.ADMIN_CONTENT)
can_read_contacts = require_scopes(Scope.ADMIN_CONTACT)
