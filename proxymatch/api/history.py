"""
Proxy Match: Crossed-paths history API
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Response, status

from proxymatch.api.deps import get_session, to_http_exception
from proxymatch.errors import ProxyMatchError
from proxymatch.schemas.history import CrossedPathResponse
from proxymatch.services.session_facade import SessionFacade

logger = structlog.get_logger("proxymatch.api.history")

router = APIRouter()


@router.get(
    "/{user_id}",
    response_model=list[CrossedPathResponse],
    summary="People recently surfaced nearby",
)
def crossed_paths(
    user_id: str,
    session: SessionFacade = Depends(get_session),
) -> list[CrossedPathResponse]:
    try:
        paths = session.crossed_paths(user_id)
    except ProxyMatchError as exc:
        raise to_http_exception(exc) from exc
    return [CrossedPathResponse.model_validate(path) for path in paths]


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear crossed-paths history",
)
def clear_history(
    user_id: str,
    session: SessionFacade = Depends(get_session),
) -> Response:
    try:
        session.clear_history(user_id)
    except ProxyMatchError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
