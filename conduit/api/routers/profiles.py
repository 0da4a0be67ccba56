"""
Profile API endpoints.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends

from ..dependencies import get_profile_service
from ..schemas import Profile, ProfileResponse
from ...auth.middleware import maybe_auth, require_auth
from ...auth.models import Identity
from ...services import ProfileService

router = APIRouter(prefix="/api/profiles", tags=["profiles"])
logger = logging.getLogger(__name__)


@router.get("/{username}", response_model=ProfileResponse)
def get_profile(username: str,
                viewer: Optional[Identity] = Depends(maybe_auth),
                profiles: ProfileService = Depends(get_profile_service)) -> ProfileResponse:
    """Get a profile; ``following`` is false for anonymous callers."""
    return ProfileResponse(profile=Profile(**profiles.get_profile(username, viewer)))


@router.post("/{username}/follow", response_model=ProfileResponse)
def follow_user(username: str,
                identity: Identity = Depends(require_auth),
                profiles: ProfileService = Depends(get_profile_service)) -> ProfileResponse:
    return ProfileResponse(profile=Profile(**profiles.follow(username, identity)))


@router.delete("/{username}/follow", response_model=ProfileResponse)
def unfollow_user(username: str,
                  identity: Identity = Depends(require_auth),
                  profiles: ProfileService = Depends(get_profile_service)) -> ProfileResponse:
    return ProfileResponse(profile=Profile(**profiles.unfollow(username, identity)))
