from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models import UserRole


class RegisterRequest(BaseModel):
    name: str = Field(min_length=2, max_length=200)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    token: str | None = None  # TOTP code, required once 2FA is enabled


class UserResponse(BaseModel):
    id: UUID
    name: str
    email: str
    role: UserRole
    two_factor_enabled: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    token: str


class RegisterResponse(TokenResponse):
    user: UserResponse


class TwoFactorSetupResponse(BaseModel):
    secret: str
    qr_code: str  # PNG data URL
    otpauth_url: str


class TwoFactorCode(BaseModel):
    token: str = Field(min_length=6, max_length=8)


class BackupCodeRequest(BaseModel):
    code: str = Field(min_length=1, max_length=32)


class SuccessResponse(BaseModel):
    success: bool = True


class TwoFactorEnableResponse(SuccessResponse):
    backup_codes: list[str]
