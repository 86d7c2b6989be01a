"""
Proxy Match: Discovery ranking

Builds a requester's discovery feed from three signals:
  1. Proximity: Geo-Index hits within the requested radius
  2. Eligibility: no Pending/Accepted connection with the requester, and no
     Declined connection still inside its cooldown
  3. Shared interests: overlap between the two users' profile tags

Score per candidate:
  score = shared_tag_count × TAG_MATCH_WEIGHT − distance_m / DISTANCE_PENALTY_DIVISOR

Shared interests dominate; distance only separates candidates with the same
overlap.  Ordering is score desc, then distance asc, then user id asc, so a
feed is fully deterministic for a given state.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from proxymatch.config import get_settings
from proxymatch.errors import InvalidInput
from proxymatch.models.position import GeoPoint, UserPosition
from proxymatch.services.connection_service import ConnectionService
from proxymatch.services.geo_index import GeoIndex
from proxymatch.services.profile_service import ProfileService

logger = structlog.get_logger("proxymatch.matching_service")


@dataclass(frozen=True, slots=True)
class RankedCandidate:
    user_id: str
    distance_m: float
    score: float
    shared_tags: frozenset[str]
    position: UserPosition


class MatchingService:
    """Stateless ranking over the geo-index, connections and profiles.

    Dependencies are injected at construction so that the service can be
    tested with hand-built collaborators.
    """

    def __init__(
        self,
        geo_index: GeoIndex,
        connections: ConnectionService,
        profiles: ProfileService,
        tag_weight: float | None = None,
        distance_divisor: float | None = None,
    ) -> None:
        settings = get_settings()
        self.geo_index = geo_index
        self.connections = connections
        self.profiles = profiles
        self.tag_weight: float = (
            tag_weight if tag_weight is not None else settings.TAG_MATCH_WEIGHT
        )
        self.distance_divisor: float = (
            distance_divisor if distance_divisor is not None else settings.DISTANCE_PENALTY_DIVISOR
        )

        logger.info(
            "matching_service_initialised",
            tag_weight=self.tag_weight,
            distance_divisor=self.distance_divisor,
        )

    # ── Public API ────────────────────────────────────────────────────

    def rank(
        self,
        requester_id: str,
        center: GeoPoint,
        radius_m: float,
        limit: int,
    ) -> list[RankedCandidate]:
        """Return up to ``limit`` eligible candidates, best first.

        The requester never appears in the result, nor does anyone the
        requester is already pending or connected with.  An empty list means
        nobody eligible is nearby.
        """
        if limit < 0:
            raise InvalidInput(f"limit must not be negative, got {limit}")

        log = logger.bind(requester_id=requester_id, radius_m=radius_m, limit=limit)
        hits = self.geo_index.query_within_radius(center, radius_m, exclude_user_id=requester_id)
        requester_tags = self.profiles.tags_for(requester_id)

        ranked: list[RankedCandidate] = []
        skipped = 0
        for hit in hits:
            if self.connections.is_blocking(requester_id, hit.user_id):
                skipped += 1
                continue
            shared = requester_tags & self.profiles.tags_for(hit.user_id)
            ranked.append(
                RankedCandidate(
                    user_id=hit.user_id,
                    distance_m=hit.distance_m,
                    score=self.score(len(shared), hit.distance_m),
                    shared_tags=shared,
                    position=hit.position,
                )
            )

        ranked.sort(key=lambda c: (-c.score, c.distance_m, c.user_id))
        log.info(
            "rank_complete",
            nearby=len(hits),
            excluded=skipped,
            returned=min(limit, len(ranked)),
        )
        return ranked[:limit]

    def score(self, shared_tag_count: int, distance_m: float) -> float:
        return shared_tag_count * self.tag_weight - distance_m / self.distance_divisor
