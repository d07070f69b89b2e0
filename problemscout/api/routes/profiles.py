"""Profile endpoints: sign-up, credit balance, past research."""

from __future__ import annotations

from fastapi import APIRouter

from problemscout.api.deps import DbDep, ResearchServiceDep, SettingsDep
from problemscout.api.schemas import (
    CreateProfileRequest,
    ProfileResponse,
    SearchListResponse,
    SearchResponse,
)
from problemscout.errors import ProfileNotFoundError
from problemscout.models.profile import UserProfile
from problemscout.models.search import SearchRecord

router = APIRouter(prefix="/profiles", tags=["profiles"])


def _profile_to_response(profile: UserProfile) -> ProfileResponse:
    return ProfileResponse(
        id=profile.id,
        first_name=profile.first_name,
        last_name=profile.last_name,
        email=profile.email,
        credits=profile.credits,
        is_pro=profile.is_pro,
        can_research=profile.can_research,
        created_at=profile.created_at.isoformat(),
        updated_at=profile.updated_at.isoformat(),
    )


def search_to_response(record: SearchRecord) -> SearchResponse:
    return SearchResponse(
        id=record.id,
        topic=record.topic,
        problems=record.results,
        created_at=record.created_at.isoformat(),
    )


@router.post("", response_model=ProfileResponse, status_code=201)
def create_profile(
    body: CreateProfileRequest,
    db: DbDep,
    settings: SettingsDep,
) -> ProfileResponse:
    profile = db.create_profile(
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        credits=settings.free_credits,
    )
    return _profile_to_response(profile)


@router.get("/{user_id}", response_model=ProfileResponse)
def get_profile(user_id: str, db: DbDep) -> ProfileResponse:
    profile = db.get_profile(user_id)
    if profile is None:
        raise ProfileNotFoundError(f"No profile with id {user_id}")
    return _profile_to_response(profile)


@router.get("/{user_id}/searches", response_model=SearchListResponse)
def list_searches(
    user_id: str,
    service: ResearchServiceDep,
    limit: int = 20,
) -> SearchListResponse:
    searches = service.history(user_id, limit=limit)
    return SearchListResponse(
        searches=[search_to_response(s) for s in searches],
        total=len(searches),
    )
