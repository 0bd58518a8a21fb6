from fastapi import HTTPException, status
from tortoise.exceptions import IntegrityError

from app.db import CRUD
from app.models import User
from app.schemas import RegisterRequest, UserResponse
from app.security import hash_password


class UserCRUD(CRUD[User, UserResponse]):  # type: ignore
    async def get_by_email(self, email: str) -> User | None:
        """Raw row, login needs the password hash and 2FA fields."""
        return await User.get_or_none(email=email.lower())

    async def register(self, payload: RegisterRequest) -> User:
        email = payload.email.lower()
        if await User.filter(email=email).exists():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered"
            )
        try:
            return await User.create(
                name=payload.name,
                email=email,
                password_hash=hash_password(payload.password),
            )
        except IntegrityError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered"
            ) from None


user_crud = UserCRUD(User, UserResponse)
