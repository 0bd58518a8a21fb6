import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from tortoise.contrib.fastapi import RegisterTortoise

from app import settings
from app.cache import close_redis
from app.errors import register_exception_handlers
from app.logger import setup_logging
from app.routers import admin, auth, blog, booking, contact, experiences, payments

SLOW_REQUEST_SECONDS = 1.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    async with RegisterTortoise(
        app,
        db_url=settings.db_url,
        modules=settings.TORTOISE_MODULES,
        generate_schemas=True,
    ):
        logger.info("MT Guide API started ({})", settings.environment)
        yield
    await close_redis()


def create_app() -> FastAPI:
    app = FastAPI(title="MT Guide API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        logger.info(
            "{} {} -> {} ({:.0f} ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed * 1000,
        )
        if elapsed > SLOW_REQUEST_SECONDS:
            logger.warning(
                "Slow request: {} {} took {:.2f}s",
                request.method,
                request.url.path,
                elapsed,
            )
        return response

    register_exception_handlers(app)

    for module in (auth, experiences, booking, payments, blog, contact, admin):
        app.include_router(module.router, prefix="/api")

    @app.get("/api/health", tags=["health"])
    async def health() -> dict:
        return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}

    return app


app = create_app()
