"""
Proxy Match: Profiles API

Profiles are owned by the client application; these endpoints register the
snapshot the matcher reads tags from.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends

from proxymatch.api.deps import get_session, to_http_exception
from proxymatch.errors import ProxyMatchError
from proxymatch.schemas.profile import ProfileResponse, ProfileUpsert
from proxymatch.services.session_facade import SessionFacade

logger = structlog.get_logger("proxymatch.api.profiles")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# PUT /{user_id}: Create or update a profile
# ──────────────────────────────────────────────────────────────────────────────

@router.put(
    "/{user_id}",
    response_model=ProfileResponse,
    summary="Create or update a profile",
)
def upsert_profile(
    user_id: str,
    payload: ProfileUpsert,
    session: SessionFacade = Depends(get_session),
) -> ProfileResponse:
    """Store the profile and re-derive interest tags when the bio changed."""
    try:
        profile = session.upsert_profile(user_id, payload.name, payload.age, payload.bio)
    except ProxyMatchError as exc:
        raise to_http_exception(exc) from exc
    return ProfileResponse.from_profile(profile)


# ──────────────────────────────────────────────────────────────────────────────
# GET /{user_id}: Get a profile
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{user_id}",
    response_model=ProfileResponse,
    summary="Get a profile",
)
def get_profile(
    user_id: str,
    session: SessionFacade = Depends(get_session),
) -> ProfileResponse:
    try:
        profile = session.get_profile(user_id)
    except ProxyMatchError as exc:
        raise to_http_exception(exc) from exc
    return ProfileResponse.from_profile(profile)
