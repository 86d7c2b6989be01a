"""
Proxy Match: Domain errors

Every failure raised by the core is a subclass of ``ProxyMatchError``.  Each
carries a stable ``reason`` code and the HTTP status the API layer maps it to.
None of them is retried inside the core.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any


class ProxyMatchError(Exception):
    """Base class for all named core failures."""

    reason: str = "error"
    status_code: int = 400

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.reason)
        self.message = message or self.reason

    def to_detail(self) -> dict[str, Any]:
        """Return the payload used in HTTP error responses."""
        return {"reason": self.reason, "message": self.message}


class InvalidInput(ProxyMatchError):
    reason = "invalid_input"
    status_code = 422


class NotFound(ProxyMatchError):
    reason = "not_found"
    status_code = 404


class DuplicateEdge(ProxyMatchError):
    reason = "duplicate_edge"
    status_code = 409

    def __init__(self, from_user_id: str, to_user_id: str) -> None:
        super().__init__(f"Interest {from_user_id} -> {to_user_id} already recorded.")
        self.from_user_id = from_user_id
        self.to_user_id = to_user_id


class ConnectionConflict(ProxyMatchError):
    """A request collided with an existing connection for the same pair.

    The existing connection is attached so callers can treat the failure as
    an idempotent no-op.
    """

    reason = "conflict"
    status_code = 409

    def __init__(self, connection: Any, message: str | None = None) -> None:
        super().__init__(message)
        self.connection = connection

    def to_detail(self) -> dict[str, Any]:
        detail = super().to_detail()
        detail["connection_id"] = str(self.connection.id)
        return detail


class AlreadyConnected(ConnectionConflict):
    reason = "already_connected"


class RequestPending(ConnectionConflict):
    reason = "request_pending"


class AlreadyResolved(ConnectionConflict):
    reason = "already_resolved"


class CooldownActive(ProxyMatchError):
    reason = "cooldown_active"
    status_code = 429

    def __init__(self, retry_at: datetime) -> None:
        super().__init__(f"Interest can be sent again after {retry_at.isoformat()}.")
        self.retry_at = retry_at

    def to_detail(self) -> dict[str, Any]:
        detail = super().to_detail()
        detail["retry_at"] = self.retry_at.isoformat()
        return detail
