import sys
from pathlib import Path

from loguru import logger

from app import settings

_FILE_FORMAT = "{time} | {level} | {name}:{function}:{line} | {message}"

# Category files, selected with logger.bind(log_type=...)
_CATEGORIES = {
    "booking": "bookings.log",
    "payment": "payments.log",
    "admin": "admin.log",
}


def setup_logging() -> None:
    """Replace loguru's default sink with the service's sinks. Safe to call twice."""
    logger.remove()
    logger.add(sys.stderr, level=settings.LOG_LEVEL)

    if not settings.LOG_TO_FILE:
        return

    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_dir / "app.log",
        rotation="1 week",
        retention="4 weeks",
        level="INFO",
        enqueue=True,
        format=_FILE_FORMAT,
    )

    for category, filename in _CATEGORIES.items():
        logger.add(
            log_dir / filename,
            rotation="1 week",
            retention="4 weeks",
            level="INFO",
            enqueue=True,
            filter=lambda record, c=category: record["extra"].get("log_type") == c,
            format=_FILE_FORMAT,
        )

    logger.add(
        log_dir / "errors.log",
        rotation="1 week",
        retention="8 weeks",
        level="ERROR",
        enqueue=True,
        backtrace=True,
    )


booking_log = logger.bind(log_type="booking")
payment_log = logger.bind(log_type="payment")
admin_log = logger.bind(log_type="admin")
