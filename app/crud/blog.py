from __future__ import annotations

from collections import Counter
from uuid import UUID

from fastapi import HTTPException, status
from tortoise.exceptions import IntegrityError

from app.db import CRUD
from app.models import Category, Post
from app.schemas import CategoryResponse, PostCreate, PostFilters, PostPage, PostResponse

FEATURED_POSTS = 3


class PostCRUD(CRUD[Post, PostResponse]):  # type: ignore
    async def _to_response(self, inst: Post) -> PostResponse:
        await inst.fetch_related("category")
        return self.to_schema(inst)

    async def list_posts(self, filters: PostFilters) -> PostPage:
        qs = Post.all()
        if filters.published is not None:
            qs = qs.filter(is_published=filters.published)
        if filters.category:
            qs = qs.filter(category__slug=filters.category)

        total = await qs.count()
        posts = (
            await qs.order_by("-created_at")
            .offset(filters.offset)
            .limit(filters.limit)
            .prefetch_related("category")
        )
        return PostPage(
            posts=[self.to_schema(p) for p in posts],
            total=total,
            has_more=filters.offset + filters.limit < total,
        )

    async def get_published(self, slug: str) -> PostResponse | None:
        inst = await Post.get_or_none(slug=slug, is_published=True)
        if inst is None:
            return None
        return await self._to_response(inst)

    async def featured(self) -> list[PostResponse]:
        posts = (
            await Post.filter(is_published=True)
            .order_by("-created_at")
            .limit(FEATURED_POSTS)
            .prefetch_related("category")
        )
        return [self.to_schema(p) for p in posts]

    async def list_admin(self) -> list[PostResponse]:
        posts = await Post.all().order_by("-created_at").prefetch_related("category")
        return [self.to_schema(p) for p in posts]

    async def _check_category(self, category_id: UUID | None) -> None:
        if category_id is not None and not await Category.filter(
            id=category_id
        ).exists():
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Category not found"
            )

    async def create_post(self, payload: PostCreate) -> PostResponse:
        await self._check_category(payload.category_id)
        try:
            inst = await Post.create(**payload.model_dump())
        except IntegrityError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Slug already in use"
            ) from None
        return await self._to_response(inst)

    async def replace_post(self, post_id: UUID, payload: PostCreate) -> PostResponse | None:
        inst = await Post.get_or_none(id=post_id)
        if inst is None:
            return None
        await self._check_category(payload.category_id)
        inst.update_from_dict(payload.model_dump())
        try:
            await inst.save()
        except IntegrityError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Slug already in use"
            ) from None
        return await self._to_response(inst)


class CategoryCRUD(CRUD[Category, CategoryResponse]):  # type: ignore
    async def list_with_counts(self) -> list[CategoryResponse]:
        """Categories with the number of published posts in each."""
        categories = await Category.all().order_by("name")
        counts = Counter(
            await Post.filter(is_published=True, category_id__isnull=False).values_list(
                "category_id", flat=True
            )
        )
        return [
            CategoryResponse(id=c.id, name=c.name, slug=c.slug, post_count=counts[c.id])
            for c in categories
        ]


post_crud = PostCRUD(Post, PostResponse)
category_crud = CategoryCRUD(Category, CategoryResponse)
