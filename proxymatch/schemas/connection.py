from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class MeetingContextBody(BaseModel):
    venue_id: Optional[str] = None
    neighborhood_id: Optional[str] = None
    city_id: Optional[str] = None

    model_config = {"from_attributes": True}


class InterestCreate(BaseModel):
    from_user_id: str
    to_user_id: str
    meeting_context: Optional[MeetingContextBody] = None


class ResolveRequest(BaseModel):
    outcome: str  # accepted / declined


class ConnectionResponse(BaseModel):
    id: UUID
    user_a: str
    user_b: str
    initiator_id: str
    status: str
    created_at: datetime
    resolved_at: Optional[datetime] = None
    meeting_context: Optional[MeetingContextBody] = None
    is_mutual_match: bool = False

    model_config = {"from_attributes": True}

    @classmethod
    def from_connection(cls, connection) -> "ConnectionResponse":
        context = connection.meeting_context
        return cls(
            id=connection.id,
            user_a=connection.user_a,
            user_b=connection.user_b,
            initiator_id=connection.initiator_id,
            status=connection.status.value,
            created_at=connection.created_at,
            resolved_at=connection.resolved_at,
            meeting_context=MeetingContextBody.model_validate(context) if context else None,
            is_mutual_match=connection.status.value == "accepted",
        )


class InterestEdgeResponse(BaseModel):
    from_user_id: str
    to_user_id: str
    created_at: datetime

    model_config = {"from_attributes": True}
