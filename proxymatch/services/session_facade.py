"""
Proxy Match: Session Facade

The single entry point used by the HTTP layer (or any other client).  It
validates client input, resolves defaults from configuration and delegates to
the geo-index, matcher, connection manager, profile directory and history.
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Optional

import structlog

from proxymatch.config import Settings, get_settings
from proxymatch.errors import InvalidInput
from proxymatch.models.connection import Connection, ConnectionStatus, InterestEdge, MeetingContext
from proxymatch.models.history import CrossedPath
from proxymatch.models.position import GeoPoint, UserPosition
from proxymatch.models.profile import Profile
from proxymatch.services.connection_service import ConnectionService
from proxymatch.services.expiry_sweeper import ExpirySweeper
from proxymatch.services.geo_index import GeoIndex
from proxymatch.services.history_service import HistoryService
from proxymatch.services.interest_graph import InterestGraph
from proxymatch.services.matching_service import MatchingService, RankedCandidate
from proxymatch.services.profile_service import ProfileService, TagExtractor
from proxymatch.utils.clock import Clock, utcnow
from proxymatch.utils.geo import validate_coordinates, validate_radius

logger = structlog.get_logger("proxymatch.session_facade")


class SessionFacade:
    def __init__(
        self,
        geo_index: GeoIndex,
        interest_graph: InterestGraph,
        connections: ConnectionService,
        profiles: ProfileService,
        matcher: MatchingService,
        history: HistoryService,
        settings: Optional[Settings] = None,
        clock: Clock = utcnow,
    ) -> None:
        self.geo_index = geo_index
        self.interest_graph = interest_graph
        self.connections = connections
        self.profiles = profiles
        self.matcher = matcher
        self.history = history
        self.settings = settings or get_settings()
        self._clock = clock

    # ── Profiles ──────────────────────────────────────────────────────

    def upsert_profile(self, user_id: str, name: str, age: int, bio: str = "") -> Profile:
        return self.profiles.upsert_profile(user_id, name, age, bio)

    def get_profile(self, user_id: str) -> Profile:
        return self.profiles.get(user_id)

    # ── Positions ─────────────────────────────────────────────────────

    def report_position(
        self,
        user_id: str,
        latitude: float,
        longitude: float,
        venue_id: Optional[str] = None,
        neighborhood_id: Optional[str] = None,
        city_id: Optional[str] = None,
    ) -> UserPosition:
        self._require_known(user_id)
        return self.geo_index.upsert_position(
            UserPosition(
                user_id=user_id,
                latitude=latitude,
                longitude=longitude,
                venue_id=venue_id,
                neighborhood_id=neighborhood_id,
                city_id=city_id,
            )
        )

    def deactivate(self, user_id: str) -> bool:
        self._require_known(user_id)
        removed = self.geo_index.remove_position(user_id)
        logger.info("user_deactivated", user_id=user_id, was_active=removed)
        return removed

    # ── Discovery ─────────────────────────────────────────────────────

    def discover(
        self,
        user_id: str,
        center: Optional[GeoPoint] = None,
        radius_m: Optional[float] = None,
        level: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[RankedCandidate]:
        """Return the ranked discovery feed for ``user_id``.

        ``center`` defaults to the user's last reported position and the
        radius to the named ``level`` (``nearby`` when neither is given).
        """
        self._require_known(user_id)
        if center is None:
            current = self.geo_index.get(user_id)
            if current is None:
                raise InvalidInput("No active position; report a position or pass a center.")
            center = current.point
        validate_coordinates(center.latitude, center.longitude)

        radius = self.radius_for(level, radius_m)
        if limit is None:
            limit = self.settings.DISCOVERY_DEFAULT_LIMIT
        if not 0 <= limit <= self.settings.DISCOVERY_MAX_LIMIT:
            raise InvalidInput(
                f"limit must be between 0 and {self.settings.DISCOVERY_MAX_LIMIT}, got {limit}"
            )

        candidates = self.matcher.rank(user_id, center, radius, limit)

        now = self._clock()
        self.history.record(
            user_id,
            (
                CrossedPath(
                    user_id=c.user_id,
                    distance_m=c.distance_m,
                    seen_at=now,
                    venue_id=c.position.venue_id,
                    neighborhood_id=c.position.neighborhood_id,
                    city_id=c.position.city_id,
                )
                for c in candidates
            ),
        )
        return candidates

    def radius_for(self, level: Optional[str], radius_m: Optional[float]) -> float:
        """Resolve an explicit radius or a named proximity level to metres."""
        if radius_m is not None:
            validate_radius(radius_m)
            return radius_m
        levels = self.settings.PROXIMITY_LEVELS
        try:
            return levels[level or "nearby"]
        except KeyError:
            raise InvalidInput(
                f"Unknown proximity level {level!r}; expected one of {sorted(levels)}."
            ) from None

    # ── Connections ───────────────────────────────────────────────────

    def send_interest(
        self,
        from_user_id: str,
        to_user_id: str,
        context: Optional[MeetingContext] = None,
    ) -> Connection:
        """Send interest; the meeting context defaults to the sender's labels."""
        self._require_known(from_user_id)
        self._require_known(to_user_id)
        if context is None:
            position = self.geo_index.get(from_user_id)
            if position is not None:
                context = MeetingContext(
                    venue_id=position.venue_id,
                    neighborhood_id=position.neighborhood_id,
                    city_id=position.city_id,
                )
        return self.connections.send_interest(from_user_id, to_user_id, context)

    def resolve_interest(
        self,
        connection_id: uuid.UUID,
        outcome: ConnectionStatus | str,
    ) -> Connection:
        return self.connections.resolve(connection_id, outcome)

    def list_connections(
        self,
        user_id: str,
        status: Optional[ConnectionStatus] = None,
    ) -> list[Connection]:
        self._require_known(user_id)
        return self.connections.list_for_user(user_id, status)

    def interests_from(self, user_id: str) -> list[InterestEdge]:
        self._require_known(user_id)
        return list(self.interest_graph.interests_from(user_id))

    # ── History ───────────────────────────────────────────────────────

    def crossed_paths(self, user_id: str) -> list[CrossedPath]:
        self._require_known(user_id)
        return self.history.list(user_id)

    def clear_history(self, user_id: str) -> int:
        self._require_known(user_id)
        return self.history.clear(user_id)

    # ── Internal helpers ──────────────────────────────────────────────

    def _require_known(self, user_id: str) -> None:
        if not user_id or not self.profiles.exists(user_id):
            raise InvalidInput(f"Unknown user {user_id!r}.")


def build_session(settings: Optional[Settings] = None, clock: Clock = utcnow) -> SessionFacade:
    """Wire a facade and all of its services from ``settings``."""
    settings = settings or get_settings()
    geo_index = GeoIndex(
        cell_size_deg=settings.GEO_CELL_SIZE_DEGREES,
        ttl=timedelta(seconds=settings.POSITION_TTL_SECONDS),
        clock=clock,
    )
    interest_graph = InterestGraph(clock=clock)
    connections = ConnectionService(
        interest_graph,
        cooldown=timedelta(seconds=settings.DECLINE_COOLDOWN_SECONDS),
        clock=clock,
    )
    profiles = ProfileService(TagExtractor(settings.interest_vocabulary))
    matcher = MatchingService(
        geo_index,
        connections,
        profiles,
        tag_weight=settings.TAG_MATCH_WEIGHT,
        distance_divisor=settings.DISTANCE_PENALTY_DIVISOR,
    )
    history = HistoryService(limit=settings.CROSSED_PATHS_LIMIT)
    return SessionFacade(
        geo_index,
        interest_graph,
        connections,
        profiles,
        matcher,
        history,
        settings=settings,
        clock=clock,
    )


def build_sweeper(session: SessionFacade, clock: Clock = utcnow) -> ExpirySweeper:
    settings = session.settings
    return ExpirySweeper(
        session.geo_index,
        interval_seconds=settings.EXPIRY_SWEEP_INTERVAL_SECONDS,
        ttl=timedelta(seconds=settings.POSITION_TTL_SECONDS),
        clock=clock,
    )
