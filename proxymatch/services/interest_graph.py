"""
Proxy Match: Interest-Graph

Directed "like" edges between users.  The graph only answers whether interest
exists in one or both directions; connection lifecycle lives in
``ConnectionService``.
"""

from __future__ import annotations

from typing import Iterator

import structlog

from proxymatch.errors import DuplicateEdge, InvalidInput
from proxymatch.models.connection import InterestEdge
from proxymatch.utils.clock import Clock, utcnow
from proxymatch.utils.keyed_lock import KeyedLock

logger = structlog.get_logger("proxymatch.interest_graph")


class OutboundEdges:
    """Restartable view over one user's outbound edges.

    Each iteration walks a fresh copy, so the view can be consumed any
    number of times and never observes a concurrent write mid-walk.
    """

    def __init__(self, graph: "InterestGraph", user_id: str) -> None:
        self._graph = graph
        self._user_id = user_id

    def __iter__(self) -> Iterator[InterestEdge]:
        edges = self._graph._outbound.get(self._user_id, {})
        for to_user_id in sorted(list(edges)):
            edge = edges.get(to_user_id)
            if edge is not None:
                yield edge


class InterestGraph:
    """Adjacency-set store of interest edges."""

    def __init__(self, clock: Clock = utcnow) -> None:
        self._clock = clock
        self._outbound: dict[str, dict[str, InterestEdge]] = {}
        self._locks = KeyedLock()

    def record_interest(self, from_user_id: str, to_user_id: str) -> InterestEdge:
        """Insert the edge ``from -> to``; ``DuplicateEdge`` if it exists."""
        if from_user_id == to_user_id:
            raise InvalidInput("A user cannot express interest in themselves.")

        with self._locks.hold(from_user_id):
            edges = self._outbound.setdefault(from_user_id, {})
            if to_user_id in edges:
                raise DuplicateEdge(from_user_id, to_user_id)
            edge = InterestEdge(from_user_id, to_user_id, self._clock())
            edges[to_user_id] = edge

        logger.debug("interest_recorded", from_user_id=from_user_id, to_user_id=to_user_id)
        return edge

    def has_interest(self, from_user_id: str, to_user_id: str) -> bool:
        return to_user_id in self._outbound.get(from_user_id, {})

    def has_mutual_interest(self, user_a: str, user_b: str) -> bool:
        return self.has_interest(user_a, user_b) and self.has_interest(user_b, user_a)

    def interests_from(self, user_id: str) -> OutboundEdges:
        return OutboundEdges(self, user_id)

    def retract_pair(self, user_a: str, user_b: str) -> int:
        """Remove both directed edges between two users; returns how many."""
        removed = 0
        for src, dst in ((user_a, user_b), (user_b, user_a)):
            with self._locks.hold(src):
                edges = self._outbound.get(src)
                if edges is not None and edges.pop(dst, None) is not None:
                    removed += 1
                    if not edges:
                        del self._outbound[src]
        if removed:
            logger.debug("interest_retracted", user_a=user_a, user_b=user_b, removed=removed)
        return removed
