"""
Shared pytest fixtures available to every test file automatically.
No imports needed in test files; pytest discovers this by convention.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from tortoise import Tortoise

from app import settings
from app.deps import (
    get_current_user,
    get_email_service,
    get_stripe_gateway,
    get_two_factor_service,
)
from app.errors import register_exception_handlers
from app.routers import admin, auth, blog, booking, contact, experiences, payments

from .factories import make_admin, make_client

ROUTERS = (auth, experiences, booking, payments, blog, contact, admin)


# ---------------------------------------------------------------------------
# Default no-op service mocks; prevent real Stripe / Resend calls in tests
# ---------------------------------------------------------------------------


def _noop_stripe_gateway():
    mock = MagicMock()
    mock.create_payment_intent = AsyncMock()
    mock.retrieve_payment_intent = AsyncMock()
    mock.create_refund = AsyncMock()
    mock.construct_event = MagicMock(return_value={})
    return mock


def _noop_email_service():
    mock = MagicMock()
    mock.send_booking_confirmation = AsyncMock(return_value={"id": "email_1"})
    mock.send_contact_notification = AsyncMock(return_value={"id": "email_2"})
    return mock


def _noop_two_factor_service():
    mock = MagicMock()
    mock.verify_token = MagicMock(return_value=True)
    mock.generate_secret = AsyncMock()
    mock.enable = AsyncMock()
    mock.disable = AsyncMock(return_value=True)
    mock.verify_backup_code = AsyncMock(return_value=True)
    return mock


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    """In-memory stand-in for the Redis client used by cache and rate limits."""
    redis = MagicMock()
    redis.get = AsyncMock(return_value=None)
    redis.setex = AsyncMock()
    redis.delete = AsyncMock()
    redis.incr = AsyncMock(return_value=1)
    redis.expire = AsyncMock()
    redis.ttl = AsyncMock(return_value=60)
    monkeypatch.setattr("app.cache.get_redis", lambda: redis)
    monkeypatch.setattr("app.ratelimit.get_redis", lambda: redis)
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", False)
    return redis


# ---------------------------------------------------------------------------
# App builder, used by all client fixtures
# ---------------------------------------------------------------------------


def build_app(
    current_user=None,
    stripe_gateway=None,
    email_service=None,
    two_factor_service=None,
) -> FastAPI:
    """
    Fresh FastAPI app with every router mounted under /api.

    `current_user` replaces bearer-token authentication; scope checks still
    run against its scopes. Leave it None to exercise the real token flow.
    External services default to no-op mocks.
    """
    app = FastAPI()
    register_exception_handlers(app)
    for module in ROUTERS:
        app.include_router(module.router, prefix="/api")

    if current_user is not None:

        async def _user():
            return current_user

        app.dependency_overrides[get_current_user] = _user

    sg = stripe_gateway if stripe_gateway is not None else _noop_stripe_gateway()
    es = email_service if email_service is not None else _noop_email_service()
    tf = two_factor_service if two_factor_service is not None else _noop_two_factor_service()
    app.dependency_overrides[get_stripe_gateway] = lambda: sg
    app.dependency_overrides[get_email_service] = lambda: es
    app.dependency_overrides[get_two_factor_service] = lambda: tf

    return app


# ---------------------------------------------------------------------------
# Reusable client fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def anon_client():
    """No authenticated user; public routes and real 401/403 checks."""
    return TestClient(build_app(), raise_server_exceptions=True)


@pytest.fixture()
def user_client():
    return TestClient(build_app(make_client()), raise_server_exceptions=True)


@pytest.fixture()
def admin_client():
    return TestClient(build_app(make_admin()), raise_server_exceptions=True)


@pytest.fixture()
def client_factory():
    def _make(
        current_user=None,
        stripe_gateway=None,
        email_service=None,
        two_factor_service=None,
        raise_server_exceptions: bool = True,
    ) -> TestClient:
        return TestClient(
            build_app(
                current_user,
                stripe_gateway=stripe_gateway,
                email_service=email_service,
                two_factor_service=two_factor_service,
            ),
            raise_server_exceptions=raise_server_exceptions,
        )

    return _make


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture()
async def db():
    """Tortoise on a fresh in-memory SQLite database."""
    await Tortoise.init(db_url="sqlite://:memory:", modules=settings.TORTOISE_MODULES)
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()
