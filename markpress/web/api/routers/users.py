"""User profile endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Path

from markpress.services.models import ProfileUpdate
from markpress.web.api.dependencies import CurrentUser, Profiles
from markpress.web.api.schemas import UserResponse

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    profiles: Profiles,
    user_id: str = Path(..., description="User ID"),
) -> UserResponse:
    """Public profile with the number of published blogs."""
    user = await profiles.get_profile(user_id)
    return UserResponse(user=user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    payload: ProfileUpdate,
    caller_id: CurrentUser,
    profiles: Profiles,
    user_id: str = Path(..., description="User ID"),
) -> UserResponse:
    """Edit the caller's own profile."""
    user = await profiles.update_profile(user_id, caller_id, payload)
    return UserResponse(user=user)
