"""
Proxy Match: Positions API

Location reports from active clients and explicit deactivation.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Response, status

from proxymatch.api.deps import get_session, to_http_exception
from proxymatch.errors import ProxyMatchError
from proxymatch.schemas.position import PositionReport, PositionResponse
from proxymatch.services.session_facade import SessionFacade

logger = structlog.get_logger("proxymatch.api.positions")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# PUT /{user_id}: Report the user's current position
# ──────────────────────────────────────────────────────────────────────────────

@router.put(
    "/{user_id}",
    response_model=PositionResponse,
    summary="Report current position",
)
def report_position(
    user_id: str,
    payload: PositionReport,
    session: SessionFacade = Depends(get_session),
) -> PositionResponse:
    """Insert or replace the user's live position.

    Coordinates outside [-90, 90] / [-180, 180] are rejected with 422
    before anything is stored.
    """
    try:
        stored = session.report_position(
            user_id,
            payload.latitude,
            payload.longitude,
            venue_id=payload.venue_id,
            neighborhood_id=payload.neighborhood_id,
            city_id=payload.city_id,
        )
    except ProxyMatchError as exc:
        logger.info("report_position_rejected", user_id=user_id, reason=exc.reason)
        raise to_http_exception(exc) from exc
    return PositionResponse.model_validate(stored)


# ──────────────────────────────────────────────────────────────────────────────
# DELETE /{user_id}: Go inactive
# ──────────────────────────────────────────────────────────────────────────────

@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Stop sharing position",
)
def deactivate(
    user_id: str,
    session: SessionFacade = Depends(get_session),
) -> Response:
    try:
        session.deactivate(user_id)
    except ProxyMatchError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
