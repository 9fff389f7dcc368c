"""Comment endpoints scoped to a blog."""

from __future__ import annotations

from fastapi import APIRouter, Path

from markpress.web.api.dependencies import Content, CurrentUser
from markpress.web.api.schemas import CommentCreate, CommentListResponse, CommentResponse

router = APIRouter(prefix="/blogs/{blog_id}/comments", tags=["Comments"])


@router.post("", response_model=CommentResponse)
async def add_comment(
    payload: CommentCreate,
    user_id: CurrentUser,
    content: Content,
    blog_id: str = Path(..., description="Blog ID"),
) -> CommentResponse:
    """Comment on a published blog."""
    comment = await content.add_comment(blog_id, user_id, payload.content)
    return CommentResponse(comment=comment)


@router.get("", response_model=CommentListResponse)
async def list_comments(
    content: Content,
    blog_id: str = Path(..., description="Blog ID"),
) -> CommentListResponse:
    """Comments on a blog, newest first."""
    comments = await content.list_comments(blog_id)
    return CommentListResponse(comments=comments)
