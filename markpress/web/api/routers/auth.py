"""Signup endpoint.

Identity creation is delegated to the identity provider; this router only
records the profile that goes with the new identity.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter

from markpress.services.exceptions import ValidationError
from markpress.web.api.dependencies import Identities, Profiles
from markpress.web.api.schemas import SignupRequest, SignupResponse, SignupUser

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", response_model=SignupResponse)
async def signup(
    payload: SignupRequest,
    identity_provider: Identities,
    profiles: Profiles
) -> SignupResponse:
    """Create an identity and its profile.

    Returns:
        SignupResponse: The new user's id, email and name

    Raises:
        ValidationError: If a field is missing or the provider rejects the signup
    """
    email = (payload.email or "").strip()
    name = (payload.name or "").strip()
    if not email or not payload.password or not name:
        raise ValidationError("signup", "Missing required fields")

    identity = await identity_provider.create_user(email, payload.password, name)
    user = await profiles.create_profile(identity.id, name, identity.email or email)

    logger.info("User signed up", extra={"user_id": user.id})
    return SignupResponse(user=SignupUser(id=user.id, email=user.email, name=user.name))
