"""
Proxy Match: Connection and interest-edge records.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


class ConnectionStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"

    @property
    def is_terminal(self) -> bool:
        return self is not ConnectionStatus.PENDING


@dataclass(frozen=True, slots=True)
class MeetingContext:
    """Where two users were when the connection was started."""

    venue_id: Optional[str] = None
    neighborhood_id: Optional[str] = None
    city_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class InterestEdge:
    from_user_id: str
    to_user_id: str
    created_at: datetime


def canonical_pair(user_a: str, user_b: str) -> tuple[str, str]:
    """Order two user ids so ``(u, v)`` and ``(v, u)`` share one key."""
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


@dataclass(frozen=True, slots=True)
class Connection:
    user_a: str
    user_b: str
    initiator_id: str
    status: ConnectionStatus
    created_at: datetime
    resolved_at: Optional[datetime] = None
    meeting_context: Optional[MeetingContext] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @property
    def pair(self) -> tuple[str, str]:
        return (self.user_a, self.user_b)

    def other(self, user_id: str) -> str:
        """Return the counterpart of ``user_id`` in this connection."""
        return self.user_b if user_id == self.user_a else self.user_a

    def __repr__(self) -> str:
        return f"<Connection {self.user_a} <-> {self.user_b} status={self.status.value!r}>"
