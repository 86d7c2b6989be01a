"""
Proxy Match: Discovery API

Returns the ranked feed of nearby people for a user.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends

from proxymatch.api.deps import get_session, to_http_exception
from proxymatch.errors import ProxyMatchError
from proxymatch.models.position import GeoPoint
from proxymatch.schemas.discovery import CandidateItem, DiscoverRequest, DiscoverResponse
from proxymatch.services.session_facade import SessionFacade

logger = structlog.get_logger("proxymatch.api.discovery")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# POST /{user_id}: Ranked discovery feed
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/{user_id}",
    response_model=DiscoverResponse,
    summary="Ranked nearby candidates",
)
def discover(
    user_id: str,
    payload: DiscoverRequest,
    session: SessionFacade = Depends(get_session),
) -> DiscoverResponse:
    """Rank nearby users by shared interests, then distance.

    Either ``radius_m`` or a named ``level`` selects the search radius;
    ``center`` defaults to the caller's last reported position.
    """
    center = (
        GeoPoint(payload.center.latitude, payload.center.longitude)
        if payload.center is not None
        else None
    )
    try:
        candidates = session.discover(
            user_id,
            center=center,
            radius_m=payload.radius_m,
            level=payload.level,
            limit=payload.limit,
        )
        radius = session.radius_for(payload.level, payload.radius_m)
    except ProxyMatchError as exc:
        raise to_http_exception(exc) from exc

    items = []
    for candidate in candidates:
        profile = session.profiles.find(candidate.user_id)
        items.append(
            CandidateItem(
                user_id=candidate.user_id,
                name=profile.name if profile else None,
                age=profile.age if profile else None,
                distance_m=round(candidate.distance_m, 2),
                score=round(candidate.score, 4),
                shared_tags=sorted(candidate.shared_tags),
                venue_id=candidate.position.venue_id,
                neighborhood_id=candidate.position.neighborhood_id,
                city_id=candidate.position.city_id,
            )
        )
    return DiscoverResponse(items=items, radius_m=radius)
