from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from app.cache import invalidate_availability_cache
from app.crud import (
    experience_crud,
    experience_date_crud,
    get_dashboard,
    post_crud,
    testimonial_crud,
)
from app.deps import CurrentUser, can_manage_content, require_admin
from app.logger import admin_log
from app.schemas import (
    AdminExperience,
    DashboardResponse,
    ExperienceCreate,
    ExperienceDateCreate,
    ExperienceDateResponse,
    ExperienceDateUpdate,
    ExperienceResponse,
    PostCreate,
    PostResponse,
    TestimonialCreate,
    TestimonialResponse,
    TestimonialWithExperience,
)

router = APIRouter(prefix="/admin", tags=["admin"])


def _not_found(what: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


# ---------------------------------------------------------------------------
# Experiences
# ---------------------------------------------------------------------------


@router.get(
    "/experiences",
    response_model=list[AdminExperience],
    dependencies=[Depends(can_manage_content)],
)
async def list_experiences() -> list[AdminExperience]:
    return await experience_crud.list_admin()


@router.post(
    "/experiences",
    response_model=ExperienceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_experience(
    payload: ExperienceCreate,
    current_user: CurrentUser = Depends(can_manage_content),
) -> ExperienceResponse:
    experience = await experience_crud.create_experience(payload)
    admin_log.info("Experience {} created by {}", experience.slug, current_user.email)
    return experience


@router.put("/experiences/{experience_id}", response_model=ExperienceResponse)
async def update_experience(
    experience_id: UUID,
    payload: ExperienceCreate,
    current_user: CurrentUser = Depends(can_manage_content),
) -> ExperienceResponse:
    experience = await experience_crud.replace_experience(experience_id, payload)
    if not experience:
        raise _not_found("Experience")
    admin_log.info("Experience {} updated by {}", experience.slug, current_user.email)
    return experience


@router.delete("/experiences/{experience_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_experience(
    experience_id: UUID,
    current_user: CurrentUser = Depends(can_manage_content),
) -> None:
    if not await experience_crud.delete_experience(experience_id):
        raise _not_found("Experience")
    admin_log.info("Experience {} deleted by {}", experience_id, current_user.email)


# ---------------------------------------------------------------------------
# Experience dates
# ---------------------------------------------------------------------------


@router.post(
    "/experience-dates",
    response_model=ExperienceDateResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_manage_content)],
)
async def create_experience_date(payload: ExperienceDateCreate) -> ExperienceDateResponse:
    return await experience_date_crud.create_date(payload)


@router.put(
    "/experience-dates/{date_id}",
    response_model=ExperienceDateResponse,
    dependencies=[Depends(can_manage_content)],
)
async def update_experience_date(
    date_id: UUID, payload: ExperienceDateUpdate
) -> ExperienceDateResponse:
    experience_date = await experience_date_crud.update_date(date_id, payload)
    if not experience_date:
        raise _not_found("Experience date")
    # max_attendees may have changed
    await invalidate_availability_cache(date_id)
    return experience_date


@router.delete(
    "/experience-dates/{date_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(can_manage_content)],
)
async def delete_experience_date(date_id: UUID) -> None:
    if not await experience_date_crud.delete_date(date_id):
        raise _not_found("Experience date")
    await invalidate_availability_cache(date_id)


# ---------------------------------------------------------------------------
# Blog posts
# ---------------------------------------------------------------------------


@router.get(
    "/posts",
    response_model=list[PostResponse],
    dependencies=[Depends(can_manage_content)],
)
async def list_posts() -> list[PostResponse]:
    return await post_crud.list_admin()


@router.post(
    "/posts",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_manage_content)],
)
async def create_post(payload: PostCreate) -> PostResponse:
    return await post_crud.create_post(payload)


@router.put(
    "/posts/{post_id}",
    response_model=PostResponse,
    dependencies=[Depends(can_manage_content)],
)
async def update_post(post_id: UUID, payload: PostCreate) -> PostResponse:
    post = await post_crud.replace_post(post_id, payload)
    if not post:
        raise _not_found("Post")
    return post


@router.delete(
    "/posts/{post_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(can_manage_content)],
)
async def delete_post(post_id: UUID) -> None:
    if not await post_crud.delete_by(id=post_id):
        raise _not_found("Post")


# ---------------------------------------------------------------------------
# Testimonials
# ---------------------------------------------------------------------------


@router.get(
    "/testimonials",
    response_model=list[TestimonialWithExperience],
    dependencies=[Depends(can_manage_content)],
)
async def list_testimonials() -> list[TestimonialWithExperience]:
    return await testimonial_crud.list_all()


@router.post(
    "/testimonials",
    response_model=TestimonialResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_manage_content)],
)
async def create_testimonial(payload: TestimonialCreate) -> TestimonialResponse:
    return await testimonial_crud.create_testimonial(payload)


@router.put(
    "/testimonials/{testimonial_id}",
    response_model=TestimonialResponse,
    dependencies=[Depends(can_manage_content)],
)
async def update_testimonial(
    testimonial_id: UUID, payload: TestimonialCreate
) -> TestimonialResponse:
    testimonial = await testimonial_crud.update_testimonial(testimonial_id, payload)
    if not testimonial:
        raise _not_found("Testimonial")
    return testimonial


@router.delete(
    "/testimonials/{testimonial_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(can_manage_content)],
)
async def delete_testimonial(testimonial_id: UUID) -> None:
    if not await testimonial_crud.delete_by(id=testimonial_id):
        raise _not_found("Testimonial")


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    dependencies=[Depends(require_admin)],
)
async def dashboard() -> DashboardResponse:
    return await get_dashboard()
