from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CategorySummary(BaseModel):
    name: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class CategoryResponse(CategorySummary):
    id: UUID
    post_count: int


class PostCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    slug: str = Field(min_length=1, max_length=200, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    content: str = Field(min_length=1)
    excerpt: str = Field(min_length=1)
    cover_image: str | None = None
    category_id: UUID | None = None
    is_published: bool = False


class PostResponse(BaseModel):
    id: UUID
    title: str
    slug: str
    content: str
    excerpt: str
    cover_image: str | None
    category_id: UUID | None
    category: CategorySummary | None = None
    is_published: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostFilters(BaseModel):
    """Bind to a FastAPI route via Depends(PostFilters)."""

    published: bool | None = None
    category: str | None = None  # category slug

    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class PostPage(BaseModel):
    posts: list[PostResponse]
    total: int
    has_more: bool
