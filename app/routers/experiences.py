from fastapi import APIRouter, Depends, HTTPException, status

from app.crud import experience_crud
from app.schemas import ExperienceDetail, ExperienceFilters, ExperienceListItem

router = APIRouter(prefix="/experiences", tags=["experiences"])


@router.get("", response_model=list[ExperienceListItem])
async def list_experiences(
    filters: ExperienceFilters = Depends(),
) -> list[ExperienceListItem]:
    """Active experiences with their upcoming active dates."""
    return await experience_crud.list_public(filters)


@router.get("/category/{category}", response_model=list[ExperienceListItem])
async def list_experiences_by_category(category: str) -> list[ExperienceListItem]:
    return await experience_crud.list_by_category(category)


@router.get("/{slug}", response_model=ExperienceDetail)
async def get_experience(slug: str) -> ExperienceDetail:
    experience = await experience_crud.get_detail(slug)
    if not experience:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Experience not found"
        )
    return experience
