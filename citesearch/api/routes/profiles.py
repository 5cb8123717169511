from __future__ import annotations

from fastapi import APIRouter, HTTPException

from citesearch.errors import ProfileError
from citesearch.models.profile import PROFILES, SourceProfile, get_profile
from citesearch.models.schemas import ProfileInfo, ProfilesResponse

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


def _to_info(profile: SourceProfile) -> ProfileInfo:
    return ProfileInfo(
        id=profile.name,
        description=profile.description,
        uses_retrieval=profile.uses_retrieval,
        uses_reranking=profile.uses_reranking,
    )


@router.get("", response_model=ProfilesResponse)
async def list_profiles():
    """List the focus modes a search can run in."""
    return ProfilesResponse(profiles=[_to_info(p) for p in PROFILES.values()])


@router.get("/{profile_id}", response_model=ProfileInfo)
async def get_profile_info(profile_id: str):
    try:
        profile = get_profile(profile_id)
    except ProfileError:
        raise HTTPException(status_code=404, detail="Profile not found")
    return _to_info(profile)
