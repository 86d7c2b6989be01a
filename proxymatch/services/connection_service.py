"""
Proxy Match: Connection-Manager

Lifecycle of a pairwise connection request:

    Absent -> Pending -> Accepted | Declined

Every mutation for an unordered pair runs under that pair's lock, so the
mutual-interest check, the edge insert and the connection write happen in
one critical section.  Unrelated pairs never contend.

A declined pair may try again once ``cooldown`` has elapsed; the new
request replaces the declined record as the pair's current connection.
"""

from __future__ import annotations

import dataclasses
import uuid
from datetime import datetime, timedelta
from typing import Optional

import structlog

from proxymatch.config import get_settings
from proxymatch.errors import (
    AlreadyConnected,
    AlreadyResolved,
    CooldownActive,
    InvalidInput,
    NotFound,
    RequestPending,
)
from proxymatch.models.connection import (
    Connection,
    ConnectionStatus,
    MeetingContext,
    canonical_pair,
)
from proxymatch.services.interest_graph import InterestGraph
from proxymatch.utils.clock import Clock, utcnow
from proxymatch.utils.keyed_lock import KeyedLock

logger = structlog.get_logger("proxymatch.connection_service")

_OUTCOMES = (ConnectionStatus.ACCEPTED, ConnectionStatus.DECLINED)


class ConnectionService:
    """Owns connection records and their state transitions."""

    def __init__(
        self,
        interest_graph: InterestGraph,
        cooldown: timedelta | None = None,
        clock: Clock = utcnow,
    ) -> None:
        settings = get_settings()
        self.interest_graph = interest_graph
        self.cooldown: timedelta = cooldown if cooldown is not None else timedelta(
            seconds=settings.DECLINE_COOLDOWN_SECONDS
        )
        self._clock = clock

        self._by_id: dict[uuid.UUID, Connection] = {}
        self._current: dict[tuple[str, str], uuid.UUID] = {}
        self._by_user: dict[str, set[tuple[str, str]]] = {}
        self._pair_locks = KeyedLock()

    # ── Public API ────────────────────────────────────────────────────

    def send_interest(
        self,
        from_user_id: str,
        to_user_id: str,
        context: Optional[MeetingContext] = None,
    ) -> Connection:
        """Express interest from one user in another.

        Returns the pair's connection, either Pending or, when the other side
        had already expressed interest, Accepted.

        Raises
        ------
        AlreadyConnected
            The pair is already Accepted.
        RequestPending
            ``from_user_id`` already has a Pending request to ``to_user_id``.
        CooldownActive
            The pair was declined less than ``cooldown`` ago.
        """
        if from_user_id == to_user_id:
            raise InvalidInput("A user cannot express interest in themselves.")

        pair = canonical_pair(from_user_id, to_user_id)
        log = logger.bind(from_user_id=from_user_id, to_user_id=to_user_id)

        with self._pair_locks.hold(pair):
            now = self._clock()
            current = self._current_locked(pair)

            if current is not None and current.status is ConnectionStatus.ACCEPTED:
                log.info("send_interest_rejected", reason="already_connected")
                raise AlreadyConnected(current, "These users are already connected.")

            if current is not None and current.status is ConnectionStatus.PENDING:
                if self.interest_graph.has_interest(from_user_id, to_user_id):
                    log.info("send_interest_rejected", reason="request_pending")
                    raise RequestPending(current, "An interest request is already pending.")
                # The recipient is answering in kind: mutual fast path.
                self.interest_graph.record_interest(from_user_id, to_user_id)
                accepted = self._transition_locked(current, ConnectionStatus.ACCEPTED, now)
                log.info("mutual_interest_accepted", connection_id=str(accepted.id))
                return accepted

            if current is not None and current.status is ConnectionStatus.DECLINED:
                retry_at = current.resolved_at + self.cooldown
                if now < retry_at:
                    log.info("send_interest_rejected", reason="cooldown_active")
                    raise CooldownActive(retry_at)

            self.interest_graph.record_interest(from_user_id, to_user_id)
            connection = Connection(
                user_a=pair[0],
                user_b=pair[1],
                initiator_id=from_user_id,
                status=ConnectionStatus.PENDING,
                created_at=now,
                meeting_context=context,
            )
            if self.interest_graph.has_mutual_interest(from_user_id, to_user_id):
                connection = dataclasses.replace(
                    connection, status=ConnectionStatus.ACCEPTED, resolved_at=now
                )
            self._store_locked(connection)

        log.info(
            "connection_created",
            connection_id=str(connection.id),
            status=connection.status.value,
        )
        return connection

    def resolve(self, connection_id: uuid.UUID, outcome: ConnectionStatus | str) -> Connection:
        """Move a Pending connection to ``outcome``.

        Raises ``NotFound`` for an unknown id and ``AlreadyResolved`` when the
        connection is no longer Pending; the record is left untouched.
        """
        outcome = _parse_outcome(outcome)
        existing = self._by_id.get(connection_id)
        if existing is None:
            raise NotFound(f"Connection {connection_id} not found.")

        with self._pair_locks.hold(existing.pair):
            connection = self._by_id[connection_id]
            if connection.status.is_terminal:
                raise AlreadyResolved(
                    connection, f"Connection is already {connection.status.value}."
                )
            resolved = self._transition_locked(connection, outcome, self._clock())

        logger.info(
            "connection_resolved",
            connection_id=str(connection_id),
            status=resolved.status.value,
        )
        return resolved

    def get(self, connection_id: uuid.UUID) -> Connection:
        connection = self._by_id.get(connection_id)
        if connection is None:
            raise NotFound(f"Connection {connection_id} not found.")
        return connection

    def current_for_pair(self, user_a: str, user_b: str) -> Optional[Connection]:
        return self._current_locked(canonical_pair(user_a, user_b))

    def is_blocking(self, user_a: str, user_b: str) -> bool:
        """True when the pair should be hidden from each other's discovery.

        Pending and Accepted pairs are hidden, as are Declined pairs still
        inside the cooldown window.
        """
        current = self.current_for_pair(user_a, user_b)
        if current is None:
            return False
        if current.status is not ConnectionStatus.DECLINED:
            return True
        return self._clock() < current.resolved_at + self.cooldown

    def list_for_user(
        self,
        user_id: str,
        status: Optional[ConnectionStatus] = None,
    ) -> list[Connection]:
        """Return the user's current connections, newest first."""
        connections = []
        for pair in list(self._by_user.get(user_id, ())):
            connection = self._current_locked(pair)
            if connection is None:
                continue
            if status is not None and connection.status is not status:
                continue
            connections.append(connection)
        connections.sort(key=lambda c: (c.created_at, str(c.id)), reverse=True)
        return connections

    # ── Internal helpers ──────────────────────────────────────────────

    def _current_locked(self, pair: tuple[str, str]) -> Optional[Connection]:
        connection_id = self._current.get(pair)
        return self._by_id.get(connection_id) if connection_id is not None else None

    def _store_locked(self, connection: Connection) -> None:
        self._by_id[connection.id] = connection
        self._current[connection.pair] = connection.id
        for user_id in connection.pair:
            self._by_user.setdefault(user_id, set()).add(connection.pair)

    def _transition_locked(
        self,
        connection: Connection,
        outcome: ConnectionStatus,
        now: datetime,
    ) -> Connection:
        updated = dataclasses.replace(connection, status=outcome, resolved_at=now)
        self._by_id[updated.id] = updated
        if outcome is ConnectionStatus.DECLINED:
            # Clear the pair's interest so it can be re-expressed after cooldown.
            self.interest_graph.retract_pair(connection.user_a, connection.user_b)
            return updated

        responder = connection.other(connection.initiator_id)
        if not self.interest_graph.has_interest(responder, connection.initiator_id):
            self.interest_graph.record_interest(responder, connection.initiator_id)
        return updated


def _parse_outcome(outcome: ConnectionStatus | str) -> ConnectionStatus:
    try:
        parsed = ConnectionStatus(outcome)
    except ValueError:
        raise InvalidInput(f"Unknown outcome {outcome!r}.") from None
    if parsed not in _OUTCOMES:
        raise InvalidInput("Outcome must be 'accepted' or 'declined'.")
    return parsed
