"""Blog endpoints: create, list/search, read by slug, update and delete."""

from __future__ import annotations

from typing import Optional, Union

from fastapi import APIRouter, Path, Query

from markpress.services.exceptions import ValidationError
from markpress.web.api.dependencies import AppSettings, Content, CurrentUser, OptionalUser
from markpress.web.api.schemas import (
    AuthorBlogListResponse,
    BlogCreate,
    BlogListResponse,
    BlogResponse,
    BlogUpdate,
    SuccessResponse,
)

router = APIRouter(prefix="/blogs", tags=["Blogs"])


@router.post("", response_model=BlogResponse)
async def create_blog(
    payload: BlogCreate,
    user_id: CurrentUser,
    content: Content
) -> BlogResponse:
    """Create a blog owned by the caller."""
    blog = await content.create_blog(
        user_id,
        payload.title,
        payload.content,
        tags=payload.tags,
        is_draft=payload.is_draft,
    )
    return BlogResponse(blog=blog)


@router.get("", response_model=Union[BlogListResponse, AuthorBlogListResponse])
async def list_blogs(
    content: Content,
    settings: AppSettings,
    viewer_id: OptionalUser,
    search: Optional[str] = Query(None, description="Substring matched against title or content"),
    tag: Optional[str] = Query(None, description="Exact tag filter"),
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: Optional[int] = Query(None, ge=1, description="Blogs per page"),
    author_id: Optional[str] = Query(None, alias="authorId", description="Only this author's blogs"),
) -> Union[BlogListResponse, AuthorBlogListResponse]:
    """List published blogs, or every blog of one author.

    The author listing includes drafts when the caller is that author and
    ignores the pagination parameters.
    """
    if limit is not None and limit > settings.max_page_size:
        raise ValidationError("limit", f"Limit must be at most {settings.max_page_size}")

    result = await content.list_blogs(
        search=search,
        tag=tag,
        page=page,
        limit=limit,
        author_id=author_id,
        viewer_id=viewer_id,
    )
    if author_id:
        return AuthorBlogListResponse(blogs=result.blogs, total=result.total)
    return BlogListResponse(
        blogs=result.blogs,
        total=result.total,
        page=result.page,
        total_pages=result.total_pages,
    )


@router.get("/id/{blog_id}", response_model=BlogResponse)
async def get_blog_by_id(
    content: Content,
    viewer_id: OptionalUser,
    blog_id: str = Path(..., description="Blog ID"),
) -> BlogResponse:
    """Load a blog by id for editing. Drafts are visible to their author only."""
    blog = await content.get_blog(blog_id, viewer_id)
    return BlogResponse(blog=blog)


@router.get("/{slug}", response_model=BlogResponse)
async def get_blog_by_slug(
    content: Content,
    slug: str = Path(..., description="Blog slug"),
) -> BlogResponse:
    """Read a published blog by slug. Each read counts a view."""
    blog = await content.get_blog_by_slug(slug)
    return BlogResponse(blog=blog)


@router.put("/{blog_id}", response_model=BlogResponse)
async def update_blog(
    payload: BlogUpdate,
    user_id: CurrentUser,
    content: Content,
    blog_id: str = Path(..., description="Blog ID"),
) -> BlogResponse:
    """Update a blog. Only its author may do so."""
    blog = await content.update_blog(
        blog_id,
        user_id,
        payload.title,
        payload.content,
        tags=payload.tags,
        is_draft=payload.is_draft,
    )
    return BlogResponse(blog=blog)


@router.delete("/{blog_id}", response_model=SuccessResponse)
async def delete_blog(
    user_id: CurrentUser,
    content: Content,
    blog_id: str = Path(..., description="Blog ID"),
) -> SuccessResponse:
    """Delete a blog and its comments. Only its author may do so."""
    await content.delete_blog(blog_id, user_id)
    return SuccessResponse(success=True)
