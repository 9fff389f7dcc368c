"""Popular tags endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from markpress.web.api.dependencies import AppSettings, Tags
from markpress.web.api.schemas import TagListResponse

router = APIRouter(prefix="/tags", tags=["Tags"])


@router.get("", response_model=TagListResponse)
async def popular_tags(tags: Tags, settings: AppSettings) -> TagListResponse:
    """Most used tags across published blogs."""
    return TagListResponse(tags=await tags.popular_tags(settings.popular_tags_limit))
