import base64
import io
import secrets
from functools import lru_cache

import pyotp
import qrcode
from cryptography.fernet import Fernet, InvalidToken
from loguru import logger

from app import settings
from app.models import User
from app.security import hash_password, verify_password

BACKUP_CODE_COUNT = 10
_BACKUP_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


class TwoFactorService:
    """
    TOTP two-factor authentication. Secrets are Fernet-encrypted at rest,
    backup codes are stored hashed and are single-use.
    """

    def __init__(self, encryption_key: str, issuer: str, valid_window: int = 1):
        if encryption_key:
            self._fernet = Fernet(encryption_key)
        else:
            logger.warning("TOTP_ENCRYPTION_KEY not set, using an ephemeral key")
            self._fernet = Fernet(Fernet.generate_key())
        self.issuer = issuer
        self.valid_window = valid_window

    def _encrypt(self, value: str) -> str:
        return self._fernet.encrypt(value.encode("utf-8")).decode("utf-8")

    def _decrypt(self, token: str) -> str:
        return self._fernet.decrypt(token.encode("utf-8")).decode("utf-8")

    @staticmethod
    def _qr_data_url(otpauth_url: str) -> str:
        img = qrcode.make(otpauth_url)
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode()

    async def generate_secret(self, user: User) -> dict[str, str]:
        """Store a fresh secret with 2FA still disabled until the user verifies it."""
        secret = pyotp.random_base32()
        otpauth_url = pyotp.TOTP(secret).provisioning_uri(
            name=user.email, issuer_name=self.issuer
        )
        user.two_factor_secret = self._encrypt(secret)
        user.two_factor_enabled = False
        await user.save(update_fields=["two_factor_secret", "two_factor_enabled"])

        logger.info("2FA secret generated for user {}", user.id)
        return {
            "secret": secret,
            "qr_code": self._qr_data_url(otpauth_url),
            "otpauth_url": otpauth_url,
        }

    def verify_token(self, user: User, token: str) -> bool:
        if not user.two_factor_secret:
            logger.warning("2FA secret not found for user {}", user.id)
            return False
        try:
            secret = self._decrypt(user.two_factor_secret)
        except InvalidToken:
            logger.error("2FA secret for user {} cannot be decrypted", user.id)
            return False

        code = (token or "").strip()
        verified = code.isdigit() and pyotp.TOTP(secret).verify(
            code, valid_window=self.valid_window
        )
        if verified:
            logger.info("2FA token verified for user {}", user.id)
        else:
            logger.warning("Invalid 2FA token attempt for user {}", user.id)
        return bool(verified)

    async def enable(self, user: User, token: str) -> list[str] | None:
        """Turn 2FA on and return fresh backup codes, or None if the token is wrong."""
        if not self.verify_token(user, token):
            return None
        codes = self.generate_backup_codes()
        user.two_factor_enabled = True
        user.backup_codes = [hash_password(c) for c in codes]
        await user.save(update_fields=["two_factor_enabled", "backup_codes"])
        logger.info("2FA enabled for user {}", user.id)
        return codes

    async def disable(self, user: User, token: str) -> bool:
        if not self.verify_token(user, token):
            return False
        user.two_factor_enabled = False
        user.two_factor_secret = None
        user.backup_codes = []
        await user.save(
            update_fields=["two_factor_enabled", "two_factor_secret", "backup_codes"]
        )
        logger.info("2FA disabled for user {}", user.id)
        return True

    @staticmethod
    def generate_backup_codes(count: int = BACKUP_CODE_COUNT) -> list[str]:
        # e.g. ABCD-EFGH-2345
        return [
            "-".join(
                "".join(secrets.choice(_BACKUP_ALPHABET) for _ in range(4))
                for _ in range(3)
            )
            for _ in range(count)
        ]

    async def verify_backup_code(self, user: User, code: str) -> bool:
        normalized = code.strip().upper()
        for hashed in user.backup_codes or []:
            if verify_password(normalized, hashed):
                user.backup_codes = [h for h in user.backup_codes if h != hashed]
                await user.save(update_fields=["backup_codes"])
                logger.info("Backup code used by user {}", user.id)
                return True
        logger.warning("Invalid backup code attempt for user {}", user.id)
        return False


@lru_cache(maxsize=1)
def get_two_factor_service() -> TwoFactorService:
    return TwoFactorService(
        encryption_key=settings.TOTP_ENCRYPTION_KEY, issuer=settings.TOTP_ISSUER
    )
