from fastapi import APIRouter, Depends, HTTPException, status

from app.crud import category_crud, post_crud
from app.schemas import CategoryResponse, PostFilters, PostPage, PostResponse

router = APIRouter(prefix="/blog", tags=["blog"])


@router.get("/posts", response_model=PostPage)
async def list_posts(filters: PostFilters = Depends()) -> PostPage:
    return await post_crud.list_posts(filters)


@router.get("/posts/{slug}", response_model=PostResponse)
async def get_post(slug: str) -> PostResponse:
    post = await post_crud.get_published(slug)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories() -> list[CategoryResponse]:
    return await category_crud.list_with_counts()


@router.get("/featured", response_model=list[PostResponse])
async def featured_posts() -> list[PostResponse]:
    return await post_crud.featured()
