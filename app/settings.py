import os

from dotenv import load_dotenv

load_dotenv()

db_url = os.environ.get("DB_URL", "sqlite://:memory:")
REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
frontend_url = os.environ.get("FRONTEND_URL", "http://localhost:3000")
environment = os.environ.get("ENVIRONMENT", "development")

JWT_SECRET = os.environ.get("JWT_SECRET", "change-me-in-production-please-32-bytes")
JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.environ.get("JWT_EXPIRES_MINUTES", 60 * 24 * 7))

TOTP_ENCRYPTION_KEY = os.environ.get("TOTP_ENCRYPTION_KEY", "")
TOTP_ISSUER = os.environ.get("TOTP_ISSUER", "MT Guide")

STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "")
STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET", "")
STRIPE_CURRENCY = os.environ.get("STRIPE_CURRENCY", "mxn")

RESEND_API_KEY = os.environ.get("RESEND_API_KEY", "")
EMAIL_FROM = os.environ.get("EMAIL_FROM", "MT Guide <reservas@mtguide.mx>")
ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@mtguide.mx")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_DIR = os.environ.get("LOG_DIR", "logs")
LOG_TO_FILE = os.environ.get("LOG_TO_FILE", "true").lower() == "true"

RATE_LIMIT_ENABLED = os.environ.get("RATE_LIMIT_ENABLED", "true").lower() == "true"

TORTOISE_MODULES = {"models": ["app.models"]}
