"""
Proxy Match: Geo-Index

Holds the latest position of every active user in a fixed lat/long grid and
answers "who is within R metres of P" by scanning only the cells that can
intersect the query circle.

Concurrency model:
  * writes for one user are serialised by a per-user lock;
  * each grid cell has its own lock.  A move takes the old and new cell
    locks together, and a reader holds every cell it scans while copying
    member ids, so a moving user is never missing from both cells;
  * position records are immutable, and readers resolve member ids through
    ``_positions`` so a record moving between cells is seen exactly once.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

import structlog

from proxymatch.config import get_settings
from proxymatch.errors import InvalidInput
from proxymatch.models.position import GeoPoint, NearbyPosition, UserPosition
from proxymatch.utils.clock import Clock, utcnow
from proxymatch.utils.geo import Cell, Grid, haversine_m, validate_coordinates, validate_radius
from proxymatch.utils.keyed_lock import KeyedLock

logger = structlog.get_logger("proxymatch.geo_index")


class GeoIndex:
    """Grid-bucketed store of live user positions."""

    def __init__(
        self,
        cell_size_deg: float | None = None,
        ttl: timedelta | None = None,
        clock: Clock = utcnow,
    ) -> None:
        settings = get_settings()
        self.grid = Grid(cell_size_deg or settings.GEO_CELL_SIZE_DEGREES)
        self.ttl: timedelta = ttl if ttl is not None else timedelta(
            seconds=settings.POSITION_TTL_SECONDS
        )
        self._clock = clock

        self._positions: dict[str, UserPosition] = {}
        self._cells: dict[Cell, set[str]] = {}
        self._user_locks = KeyedLock()
        self._cell_locks = KeyedLock()

        logger.info(
            "geo_index_initialised",
            cell_size_deg=self.grid.cell_size_deg,
            ttl_seconds=self.ttl.total_seconds(),
        )

    # ── Writes ────────────────────────────────────────────────────────

    def upsert_position(self, position: UserPosition) -> UserPosition:
        """Insert or replace ``position`` and return the stored record.

        ``last_updated`` is stamped from the clock.  ``active_since`` is kept
        from the previous record when the user was already active.
        """
        validate_coordinates(position.latitude, position.longitude)
        if not position.user_id:
            raise InvalidInput("user_id is required")

        now = self._clock()
        with self._user_locks.hold(position.user_id):
            previous = self._positions.get(position.user_id)
            active_since = (
                previous.active_since
                if previous is not None and not self._is_stale(previous, now)
                else position.active_since or now
            )
            stored = UserPosition(
                user_id=position.user_id,
                latitude=float(position.latitude),
                longitude=float(position.longitude),
                venue_id=position.venue_id,
                neighborhood_id=position.neighborhood_id,
                city_id=position.city_id,
                active_since=active_since,
                last_updated=now,
            )
            new_cell = self.grid.cell_of(stored.latitude, stored.longitude)
            old_cell = (
                self.grid.cell_of(previous.latitude, previous.longitude)
                if previous is not None
                else None
            )

            # Publish the record before it becomes reachable from a cell.
            self._positions[stored.user_id] = stored
            if old_cell is None:
                with self._cell_locks.hold(new_cell):
                    self._add_to_cell_locked(new_cell, stored.user_id)
            elif old_cell != new_cell:
                # Both cells change in one critical section so a reader holding
                # them sees the user in exactly one of them.
                with self._cell_locks.hold(old_cell, new_cell):
                    self._add_to_cell_locked(new_cell, stored.user_id)
                    self._discard_from_cell_locked(old_cell, stored.user_id)

        logger.debug(
            "position_upserted",
            user_id=stored.user_id,
            cell=new_cell,
            moved=previous is not None and old_cell != new_cell,
        )
        return stored

    def remove_position(self, user_id: str) -> bool:
        """Drop the user's record.  Returns False when there was none."""
        with self._user_locks.hold(user_id):
            removed = self._remove_locked(user_id)
        if removed:
            logger.debug("position_removed", user_id=user_id)
        return removed

    def expire_stale(self, now: datetime, ttl: timedelta) -> list[str]:
        """Remove every position not updated within ``ttl`` of ``now``.

        O(n) over active users; meant for a periodic sweep rather than the
        request path.  Returns the ids that were removed.
        """
        expired: list[str] = []
        for user_id, record in list(self._positions.items()):
            if now - record.last_updated <= ttl:
                continue
            with self._user_locks.hold(user_id):
                # Re-check under the lock: the user may have reported since.
                current = self._positions.get(user_id)
                if current is None or now - current.last_updated <= ttl:
                    continue
                self._remove_locked(user_id)
                expired.append(user_id)

        if expired:
            logger.info("positions_expired", count=len(expired), remaining=len(self._positions))
        return expired

    # ── Reads ─────────────────────────────────────────────────────────

    def get(self, user_id: str) -> Optional[UserPosition]:
        record = self._positions.get(user_id)
        if record is None or self._is_stale(record, self._clock()):
            return None
        return record

    def query_within_radius(
        self,
        center: GeoPoint,
        radius_m: float,
        exclude_user_id: Optional[str] = None,
    ) -> list[NearbyPosition]:
        """Return live positions within ``radius_m`` of ``center``.

        Sorted ascending by haversine distance, ties broken by user id.
        """
        validate_coordinates(center.latitude, center.longitude)
        validate_radius(radius_m)

        now = self._clock()
        member_ids = self._collect_members(center, radius_m)
        member_ids.discard(exclude_user_id)

        hits: list[NearbyPosition] = []
        for user_id in member_ids:
            record = self._positions.get(user_id)
            if record is None or self._is_stale(record, now):
                continue
            distance = haversine_m(
                center.latitude, center.longitude, record.latitude, record.longitude
            )
            if distance <= radius_m:
                hits.append(NearbyPosition(position=record, distance_m=distance))

        hits.sort(key=lambda hit: (hit.distance_m, hit.user_id))
        return hits

    def __len__(self) -> int:
        return len(self._positions)

    # ── Internal helpers ──────────────────────────────────────────────

    def _collect_members(self, center: GeoPoint, radius_m: float) -> set[str]:
        """Snapshot the ids that may lie within the query circle."""
        wanted = self.grid.cell_count_for(center.latitude, center.longitude, radius_m)
        if wanted > len(self._cells):
            # Wide query over a sparse grid: every live user is a candidate.
            return set(self._positions)

        cells = list(self.grid.cells_covering(center.latitude, center.longitude, radius_m))
        members: set[str] = set()
        with self._cell_locks.hold(*cells):
            for cell in cells:
                bucket = self._cells.get(cell)
                if bucket:
                    members.update(bucket)
        return members

    def _add_to_cell_locked(self, cell: Cell, user_id: str) -> None:
        self._cells.setdefault(cell, set()).add(user_id)

    def _discard_from_cell_locked(self, cell: Cell, user_id: str) -> None:
        bucket = self._cells.get(cell)
        if bucket is None:
            return
        bucket.discard(user_id)
        if not bucket:
            del self._cells[cell]

    def _remove_locked(self, user_id: str) -> bool:
        record = self._positions.pop(user_id, None)
        if record is None:
            return False
        cell = self.grid.cell_of(record.latitude, record.longitude)
        with self._cell_locks.hold(cell):
            self._discard_from_cell_locked(cell, user_id)
        return True

    def _is_stale(self, record: UserPosition, now: datetime) -> bool:
        return now - record.last_updated > self.ttl
