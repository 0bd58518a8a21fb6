"""
Tests for app/deps.py: get_current_user, require_scopes and service accessors.
These use the real dep functions (no overrides) to get coverage.
"""

from __future__ import annotations

from uuid import uuid4

import jwt
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from app import settings
from app.deps import (
    CurrentUser,
    can_manage_bookings,
    get_current_user,
    get_email_service,
    get_stripe_gateway,
    get_two_factor_service,
    require_admin,
)
from app.scopes import Scope
from app.security import create_access_token

from .factories import CLIENT_ID, make_admin, make_client, make_content_editor


def _whoami_app() -> FastAPI:
    app = FastAPI()

    @app.get("/whoami")
    async def whoami(user: CurrentUser = Depends(get_current_user)):
        return {"id": str(user.id), "email": user.email, "scopes": user.scopes}

    return app


def _scoped_app(current_user: CurrentUser) -> FastAPI:
    app = FastAPI()

    @app.get("/bookings-admin", dependencies=[Depends(can_manage_bookings)])
    async def bookings_admin():
        return {"ok": True}

    @app.get("/admin-only", dependencies=[Depends(require_admin)])
    async def admin_only():
        return {"ok": True}

    async def _user():
        return current_user

    app.dependency_overrides[get_current_user] = _user
    return app


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class TestGetCurrentUser:
    def test_valid_token_authenticates(self):
        token = create_access_token(CLIENT_ID, "cliente@example.com", [Scope.PROFILE])
        with TestClient(_whoami_app()) as c:
            resp = c.get("/whoami", headers=_auth(token))
        assert resp.status_code == 200
        assert resp.json() == {
            "id": str(CLIENT_ID),
            "email": "cliente@example.com",
            "scopes": ["profile"],
        }

    def test_missing_token_returns_401(self):
        with TestClient(_whoami_app()) as c:
            resp = c.get("/whoami")
        assert resp.status_code == 401
        assert resp.headers["WWW-Authenticate"] == "Bearer"

    def test_expired_token_returns_401(self):
        token = create_access_token(CLIENT_ID, "x@example.com", [], expires_minutes=-1)
        with TestClient(_whoami_app()) as c:
            resp = c.get("/whoami", headers=_auth(token))
        assert resp.status_code == 401

    def test_token_signed_with_other_secret_returns_401(self):
        token = jwt.encode(
            {"sub": str(CLIENT_ID), "scopes": [Scope.ADMIN]},
            "some-other-secret-that-is-long-enough-32",
            algorithm=settings.JWT_ALGORITHM,
        )
        with TestClient(_whoami_app()) as c:
            resp = c.get("/whoami", headers=_auth(token))
        assert resp.status_code == 401

    def test_non_uuid_subject_returns_401(self):
        token = jwt.encode(
            {"sub": "not-a-uuid"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM
        )
        with TestClient(_whoami_app()) as c:
            resp = c.get("/whoami", headers=_auth(token))
        assert resp.status_code == 401

    def test_missing_scopes_claim_parsed_as_empty_list(self):
        token = jwt.encode(
            {"sub": str(CLIENT_ID)}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM
        )
        with TestClient(_whoami_app()) as c:
            resp = c.get("/whoami", headers=_auth(token))
        assert resp.json()["scopes"] == []


class TestRequireScopes:
    def test_admin_scope_satisfies_every_requirement(self):
        admin_only_scope = CurrentUser(id=uuid4(), email="a@x.mx", scopes=[Scope.ADMIN])
        with TestClient(_scoped_app(admin_only_scope)) as c:
            resp = c.get("/bookings-admin")
        assert resp.status_code == 200

    def test_missing_scope_returns_403_naming_it(self):
        with TestClient(_scoped_app(make_content_editor())) as c:
            resp = c.get("/bookings-admin")
        assert resp.status_code == 403
        assert "admin:bookings" in resp.json()["detail"]

    def test_client_cannot_reach_admin_only(self):
        with TestClient(_scoped_app(make_client())) as c:
            resp = c.get("/admin-only")
        assert resp.status_code == 403

    def test_admin_reaches_admin_only(self):
        with TestClient(_scoped_app(make_admin())) as c:
            resp = c.get("/admin-only")
        assert resp.status_code == 200


class TestServiceAccessors:
    def test_singletons(self):
        assert get_email_service() is get_email_service()
        assert get_stripe_gateway() is get_stripe_gateway()
        assert get_two_factor_service() is get_two_factor_service()

    def test_gateway_built_from_settings(self):
        assert get_stripe_gateway().currency == settings.STRIPE_CURRENCY
