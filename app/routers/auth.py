from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from app.crud import user_crud
from app.deps import TwoFactorService, get_account, get_two_factor_service
from app.models import User
from app.ratelimit import login_limiter, register_limiter
from app.schemas import (
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
from app.scopes import scopes_for_role
from app.security import create_access_token, verify_password

router = APIRouter(prefix="/auth", tags=["auth"])


def _invalid_2fa() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid 2FA token"
    )


def _issue_token(user: User) -> str:
    return create_access_token(
        user_id=user.id, email=user.email, scopes=scopes_for_role(user.role)
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(register_limiter)],
)
async def register(payload: RegisterRequest) -> RegisterResponse:
    user = await user_crud.register(payload)
    logger.info("User registered: {}", user.email)
    return RegisterResponse(
        token=_issue_token(user), user=UserResponse.model_validate(user)
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    dependencies=[Depends(login_limiter)],
    responses={403: {"description": "2FA token required"}},
)
async def login(
    payload: LoginRequest,
    request: Request,
    two_factor: TwoFactorService = Depends(get_two_factor_service),
):
    user = await user_crud.get_by_email(payload.email)
    if user is None or not verify_password(payload.password, user.password_hash):
        logger.warning("Failed login attempt for {}", payload.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
        )

    if user.two_factor_enabled:
        if not payload.token:
            return JSONResponse(
                status_code=status.HTTP_403_FORBIDDEN,
                content={"detail": "2FA token required", "requires_2fa": True},
            )
        if not two_factor.verify_token(user, payload.token):
            raise _invalid_2fa()

    # only failed attempts count towards the login limit
    await login_limiter.reset(request)
    logger.info("User logged in: {}", user.email)
    return TokenResponse(token=_issue_token(user))


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_account)) -> UserResponse:
    return UserResponse.model_validate(user)


# ---------------------------------------------------------------------------
# Two-factor authentication
# ---------------------------------------------------------------------------


@router.post("/2fa/setup", response_model=TwoFactorSetupResponse)
async def setup_two_factor(
    user: User = Depends(get_account),
    two_factor: TwoFactorService = Depends(get_two_factor_service),
) -> TwoFactorSetupResponse:
    return TwoFactorSetupResponse(**await two_factor.generate_secret(user))


@router.post("/2fa/verify", response_model=SuccessResponse)
async def verify_two_factor(
    payload: TwoFactorCode,
    user: User = Depends(get_account),
    two_factor: TwoFactorService = Depends(get_two_factor_service),
) -> SuccessResponse:
    if not two_factor.verify_token(user, payload.token):
        raise _invalid_2fa()
    return SuccessResponse()


@router.post("/2fa/enable", response_model=TwoFactorEnableResponse)
async def enable_two_factor(
    payload: TwoFactorCode,
    user: User = Depends(get_account),
    two_factor: TwoFactorService = Depends(get_two_factor_service),
) -> TwoFactorEnableResponse:
    codes = await two_factor.enable(user, payload.token)
    if codes is None:
        raise _invalid_2fa()
    return TwoFactorEnableResponse(backup_codes=codes)


@router.post("/2fa/disable", response_model=SuccessResponse)
async def disable_two_factor(
    payload: TwoFactorCode,
    user: User = Depends(get_account),
    two_factor: TwoFactorService = Depends(get_two_factor_service),
) -> SuccessResponse:
    if not await two_factor.disable(user, payload.token):
        raise _invalid_2fa()
    return SuccessResponse()


@router.post("/2fa/backup", response_model=SuccessResponse)
async def use_backup_code(
    payload: BackupCodeRequest,
    user: User = Depends(get_account),
    two_factor: TwoFactorService = Depends(get_two_factor_service),
) -> SuccessResponse:
    if not await two_factor.verify_backup_code(user, payload.code):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid backup code"
        )
    return SuccessResponse()
