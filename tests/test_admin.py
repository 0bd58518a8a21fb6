"""
Endpoint tests for /api/admin plus the dashboard aggregation.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from fastapi import HTTPException

from app import schemas
from app.crud.dashboard import get_dashboard
from app.crud.experience import experience_date_crud, testimonial_crud
from app.errors import CapacityExceeded
from app.models import BookingStatus
from app.schemas import ExperienceDateCreate, ExperienceDateUpdate, ExperienceResponse

from .factories import (
    DATE_ID,
    EXPERIENCE_ID,
    END,
    START,
    create_booking,
    create_experience,
    create_experience_date,
    experience_create_payload,
    experience_date_response,
    experience_response,
    make_client,
    make_content_editor,
)

EXPERIENCE_CRUD = "app.routers.admin.experience_crud"
DATE_CRUD = "app.routers.admin.experience_date_crud"
POST_CRUD = "app.routers.admin.post_crud"
TESTIMONIAL_CRUD = "app.routers.admin.testimonial_crud"


class TestAdminExperiences:
    def test_create_returns_201(self, admin_client):
        with patch(EXPERIENCE_CRUD) as mock_crud:
            mock_crud.create_experience = AsyncMock(
                return_value=ExperienceResponse(**experience_response())
            )
            resp = admin_client.post("/api/admin/experiences", json=experience_create_payload())
        assert resp.status_code == 201
        assert resp.json()["slug"] == "pico-de-orizaba"

    def test_invalid_slug_rejected(self, admin_client):
        resp = admin_client.post(
            "/api/admin/experiences", json=experience_create_payload(slug="Pico de Orizaba")
        )
        assert resp.status_code == 400

    def test_update_missing_returns_404(self, admin_client):
        with patch(EXPERIENCE_CRUD) as mock_crud:
            mock_crud.replace_experience = AsyncMock(return_value=None)
            resp = admin_client.put(
                f"/api/admin/experiences/{EXPERIENCE_ID}", json=experience_create_payload()
            )
        assert resp.status_code == 404

    def test_delete_returns_204(self, admin_client):
        with patch(EXPERIENCE_CRUD) as mock_crud:
            mock_crud.delete_experience = AsyncMock(return_value=True)
            resp = admin_client.delete(f"/api/admin/experiences/{EXPERIENCE_ID}")
        assert resp.status_code == 204

    def test_delete_with_bookings_returns_409(self, admin_client):
        with patch(EXPERIENCE_CRUD) as mock_crud:
            mock_crud.delete_experience = AsyncMock(
                side_effect=HTTPException(status_code=409, detail="has bookings")
            )
            resp = admin_client.delete(f"/api/admin/experiences/{EXPERIENCE_ID}")
        assert resp.status_code == 409

    def test_content_scope_is_enough(self, client_factory):
        client = client_factory(make_content_editor())
        with patch(EXPERIENCE_CRUD) as mock_crud:
            mock_crud.list_admin = AsyncMock(return_value=[])
            resp = client.get("/api/admin/experiences")
        assert resp.status_code == 200

    def test_client_gets_403(self, client_factory):
        resp = client_factory(make_client()).get("/api/admin/experiences")
        assert resp.status_code == 403

    def test_anonymous_gets_401(self, anon_client):
        resp = anon_client.get("/api/admin/experiences")
        assert resp.status_code == 401


class TestAdminExperienceDates:
    def test_create(self, admin_client):
        with patch(DATE_CRUD) as mock_crud:
            mock_crud.create_date = AsyncMock(return_value=experience_date_response())
            resp = admin_client.post(
                "/api/admin/experience-dates",
                json={
                    "experience_id": str(EXPERIENCE_ID),
                    "start_date": START.isoformat(),
                    "end_date": END.isoformat(),
                    "max_attendees": 10,
                },
            )
        assert resp.status_code == 201

    def test_naive_datetime_rejected(self, admin_client):
        resp = admin_client.post(
            "/api/admin/experience-dates",
            json={
                "experience_id": str(EXPERIENCE_ID),
                "start_date": "2026-07-01T08:00:00",
                "end_date": "2026-07-02T08:00:00",
                "max_attendees": 10,
            },
        )
        assert resp.status_code == 400

    def test_end_before_start_rejected(self, admin_client):
        resp = admin_client.post(
            "/api/admin/experience-dates",
            json={
                "experience_id": str(EXPERIENCE_ID),
                "start_date": END.isoformat(),
                "end_date": START.isoformat(),
                "max_attendees": 10,
            },
        )
        assert resp.status_code == 400

    def test_partial_update_invalidates_cache(self, admin_client, fake_redis):
        with patch(DATE_CRUD) as mock_crud:
            mock_crud.update_date = AsyncMock(
                return_value=experience_date_response(max_attendees=12)
            )
            resp = admin_client.put(
                f"/api/admin/experience-dates/{DATE_ID}", json={"max_attendees": 12}
            )
        assert resp.status_code == 200
        (_, payload), _ = mock_crud.update_date.call_args
        assert payload.model_dump(exclude_unset=True) == {"max_attendees": 12}
        fake_redis.delete.assert_awaited_once_with(f"availability:{DATE_ID}")

    def test_shrinking_below_confirmed_returns_409(self, admin_client):
        with patch(DATE_CRUD) as mock_crud:
            mock_crud.update_date = AsyncMock(
                side_effect=CapacityExceeded(
                    available_spots=2,
                    status_code=409,
                    detail="max_attendees is below the attendees already confirmed",
                    confirmed_attendees=8,
                )
            )
            resp = admin_client.put(
                f"/api/admin/experience-dates/{DATE_ID}", json={"max_attendees": 3}
            )
        assert resp.status_code == 409
        assert resp.json()["available_spots"] == 2
        assert resp.json()["confirmed_attendees"] == 8

    def test_delete_missing_returns_404(self, admin_client):
        with patch(DATE_CRUD) as mock_crud:
            mock_crud.delete_date = AsyncMock(return_value=False)
            resp = admin_client.delete(f"/api/admin/experience-dates/{DATE_ID}")
        assert resp.status_code == 404


class TestAdminPostsAndTestimonials:
    def test_delete_post_missing_returns_404(self, admin_client):
        with patch(POST_CRUD) as mock_crud:
            mock_crud.delete_by = AsyncMock(return_value=False)
            resp = admin_client.delete(f"/api/admin/posts/{uuid4()}")
        assert resp.status_code == 404

    def test_update_testimonial_missing_returns_404(self, admin_client):
        with patch(TESTIMONIAL_CRUD) as mock_crud:
            mock_crud.update_testimonial = AsyncMock(return_value=None)
            resp = admin_client.put(
                f"/api/admin/testimonials/{uuid4()}",
                json={"name": "Ana", "content": "Excelente", "rating": 5},
            )
        assert resp.status_code == 404
        mock_crud.update_testimonial.assert_awaited_once()

    def test_testimonial_rating_bounds(self, admin_client):
        resp = admin_client.post(
            "/api/admin/testimonials",
            json={"name": "Ana", "content": "Excelente", "rating": 6},
        )
        assert resp.status_code == 400

    def test_create_testimonial(self, admin_client):
        created = {
            "id": str(uuid4()),
            "experience_id": None,
            "name": "Ana",
            "content": "Excelente",
            "rating": 5,
            "image_url": None,
            "is_active": True,
            "created_at": START.isoformat(),
        }
        with patch(TESTIMONIAL_CRUD) as mock_crud:
            mock_crud.create_testimonial = AsyncMock(return_value=created)
            resp = admin_client.post(
                "/api/admin/testimonials",
                json={"name": "Ana", "content": "Excelente", "rating": 5},
            )
        assert resp.status_code == 201
        assert resp.json()["rating"] == 5


class TestDashboard:
    def test_requires_admin_scope(self, client_factory):
        resp = client_factory(make_content_editor()).get("/api/admin/dashboard")
        assert resp.status_code == 403

    async def test_aggregates(self, db):
        popular = await create_experience(title="Popular")
        quiet = await create_experience(title="Tranquila")
        popular_date = await create_experience_date(popular)
        quiet_date = await create_experience_date(quiet)
        await create_booking(
            popular_date,
            attendees=2,
            status=BookingStatus.CONFIRMED,
            paid_amount=Decimal("1000.00"),
        )
        await create_booking(
            popular_date,
            attendees=1,
            status=BookingStatus.CANCELLED,
            paid_amount=Decimal("700.00"),
        )
        await create_booking(popular_date, attendees=1)
        await create_booking(
            quiet_date, status=BookingStatus.CONFIRMED, paid_amount=Decimal("250.50")
        )

        dashboard = await get_dashboard()

        assert dashboard.total_experiences == 2
        assert dashboard.total_bookings == 4
        assert dashboard.pending_bookings == 1
        assert dashboard.total_revenue == Decimal("1250.50")
        assert len(dashboard.recent_bookings) == 4
        assert dashboard.popular_experiences[0].title == "Popular"
        assert dashboard.popular_experiences[0].booking_count == 3


class TestExperienceDateCRUD:
    async def test_partial_update_keeps_other_fields(self, db):
        experience = await create_experience()
        date = await create_experience_date(experience, max_attendees=8)

        updated = await experience_date_crud.update_date(
            date.id, ExperienceDateUpdate(max_attendees=12)
        )

        assert updated.max_attendees == 12
        assert updated.is_active is True

    async def test_update_rejects_end_before_existing_start(self, db):
        experience = await create_experience()
        date = await create_experience_date(experience)

        with pytest.raises(HTTPException) as exc_info:
            await experience_date_crud.update_date(
                date.id, ExperienceDateUpdate(end_date=START.replace(year=2020))
            )
        assert exc_info.value.status_code == 400

    async def test_create_for_unknown_experience_returns_404(self, db):
        with pytest.raises(HTTPException) as exc_info:
            await experience_date_crud.create_date(
                ExperienceDateCreate(
                    experience_id=uuid4(), start_date=START, end_date=END, max_attendees=5
                )
            )
        assert exc_info.value.status_code == 404

    async def test_delete_with_bookings_returns_409(self, db):
        experience = await create_experience()
        date = await create_experience_date(experience)
        await create_booking(date)

        with pytest.raises(HTTPException) as exc_info:
            await experience_date_crud.delete_date(date.id)
        assert exc_info.value.status_code == 409

    async def test_shrinking_below_confirmed_attendees_returns_409(self, db):
        experience = await create_experience()
        date = await create_experience_date(experience, max_attendees=10)
        await create_booking(date, attendees=8, status=BookingStatus.CONFIRMED)
        await create_booking(date, attendees=2)  # pending does not hold spots

        with pytest.raises(CapacityExceeded) as exc_info:
            await experience_date_crud.update_date(
                date.id, ExperienceDateUpdate(max_attendees=3)
            )

        assert exc_info.value.status_code == 409
        assert exc_info.value.confirmed_attendees == 8
        assert exc_info.value.available_spots == 2
        await date.refresh_from_db()
        assert date.max_attendees == 10

    async def test_shrinking_to_confirmed_attendees_allowed(self, db):
        experience = await create_experience()
        date = await create_experience_date(experience, max_attendees=10)
        await create_booking(date, attendees=8, status=BookingStatus.CONFIRMED)

        updated = await experience_date_crud.update_date(
            date.id, ExperienceDateUpdate(max_attendees=8)
        )

        assert updated.max_attendees == 8


class TestTestimonialCRUD:
    async def test_update_with_unknown_experience_returns_404(self, db):
        testimonial = await testimonial_crud.create_testimonial(
            schemas.TestimonialCreate(name="Ana", content="Excelente", rating=5)
        )

        with pytest.raises(HTTPException) as exc_info:
            await testimonial_crud.update_testimonial(
                testimonial.id,
                schemas.TestimonialCreate(
                    experience_id=uuid4(), name="Ana", content="Excelente", rating=5
                ),
            )
        assert exc_info.value.status_code == 404

    async def test_update_links_existing_experience(self, db):
        experience = await create_experience()
        testimonial = await testimonial_crud.create_testimonial(
            schemas.TestimonialCreate(name="Ana", content="Excelente", rating=5)
        )

        updated = await testimonial_crud.update_testimonial(
            testimonial.id,
            schemas.TestimonialCreate(
                experience_id=experience.id, name="Ana", content="Muy buena", rating=4
            ),
        )

        assert updated.experience_id == experience.id
        assert updated.rating == 4

    async def test_update_missing_returns_none(self, db):
        payload = schemas.TestimonialCreate(name="Ana", content="Excelente", rating=5)
        assert await testimonial_crud.update_testimonial(uuid4(), payload) is None
