"""
Proxy Match: Connections API

Sending interest, resolving requests and listing a user's connections.
Conflicts (already connected, request pending, already resolved) come back
as 409 with the existing ``connection_id`` so clients can treat a repeat as
a no-op.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, status

from proxymatch.api.deps import get_session, to_http_exception
from proxymatch.errors import InvalidInput, ProxyMatchError
from proxymatch.models.connection import ConnectionStatus, MeetingContext
from proxymatch.schemas.connection import (
    ConnectionResponse,
    InterestCreate,
    InterestEdgeResponse,
    ResolveRequest,
)
from proxymatch.services.session_facade import SessionFacade

logger = structlog.get_logger("proxymatch.api.connections")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# POST /: Send interest
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/",
    response_model=ConnectionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send interest to another user",
)
def send_interest(
    payload: InterestCreate,
    session: SessionFacade = Depends(get_session),
) -> ConnectionResponse:
    """Create a Pending connection, or an Accepted one when the interest is
    mutual."""
    log = logger.bind(from_user_id=payload.from_user_id, to_user_id=payload.to_user_id)
    context = None
    if payload.meeting_context is not None:
        context = MeetingContext(**payload.meeting_context.model_dump())
    try:
        connection = session.send_interest(payload.from_user_id, payload.to_user_id, context)
    except ProxyMatchError as exc:
        log.info("send_interest_failed", reason=exc.reason)
        raise to_http_exception(exc) from exc
    return ConnectionResponse.from_connection(connection)


# ──────────────────────────────────────────────────────────────────────────────
# POST /{connection_id}/resolve: Accept or decline
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/{connection_id}/resolve",
    response_model=ConnectionResponse,
    summary="Accept or decline a pending request",
)
def resolve_interest(
    connection_id: uuid.UUID,
    payload: ResolveRequest,
    session: SessionFacade = Depends(get_session),
) -> ConnectionResponse:
    try:
        connection = session.resolve_interest(connection_id, payload.outcome)
    except ProxyMatchError as exc:
        logger.info(
            "resolve_interest_failed",
            connection_id=str(connection_id),
            reason=exc.reason,
        )
        raise to_http_exception(exc) from exc
    return ConnectionResponse.from_connection(connection)


# ──────────────────────────────────────────────────────────────────────────────
# GET /: List a user's connections
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/",
    response_model=list[ConnectionResponse],
    summary="List connections for a user",
)
def list_connections(
    user_id: str = Query(..., description="User whose connections to list"),
    status_filter: Optional[str] = Query(
        None, alias="status", description="pending / accepted / declined"
    ),
    session: SessionFacade = Depends(get_session),
) -> list[ConnectionResponse]:
    try:
        status_value = _parse_status(status_filter)
        connections = session.list_connections(user_id, status_value)
    except ProxyMatchError as exc:
        raise to_http_exception(exc) from exc
    return [ConnectionResponse.from_connection(c) for c in connections]


# ──────────────────────────────────────────────────────────────────────────────
# GET /interests/{user_id}: Outbound interest edges (audit)
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/interests/{user_id}",
    response_model=list[InterestEdgeResponse],
    summary="List interest a user has expressed",
)
def list_interests(
    user_id: str,
    session: SessionFacade = Depends(get_session),
) -> list[InterestEdgeResponse]:
    try:
        edges = session.interests_from(user_id)
    except ProxyMatchError as exc:
        raise to_http_exception(exc) from exc
    return [InterestEdgeResponse.model_validate(edge) for edge in edges]


def _parse_status(value: Optional[str]) -> Optional[ConnectionStatus]:
    if value is None:
        return None
    try:
        return ConnectionStatus(value)
    except ValueError:
        raise InvalidInput(f"Unknown status {value!r}.") from None
