"""Unit tests for GeoIndex: proximity queries, moves, expiry."""
import random
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from datetime import timedelta

import pytest

from proxymatch.errors import InvalidInput
from proxymatch.models.position import GeoPoint, UserPosition
from proxymatch.utils.geo import haversine_m
from proxymatch.utils.keyed_lock import KeyedLock

EMPIRE_STATE = GeoPoint(40.7484, -73.9857)


def _pos(user_id, lat, lon, **kwargs):
    return UserPosition(user_id=user_id, latitude=lat, longitude=lon, **kwargs)


class TestQueryWithinRadius:
    """Tests for radius queries."""

    def test_empty_index_returns_empty_list(self, geo_index):
        assert geo_index.query_within_radius(EMPIRE_STATE, 1000) == []

    def test_coincident_users_distance_zero(self, geo_index):
        geo_index.upsert_position(_pos("a", 40.7484, -73.9857))
        geo_index.upsert_position(_pos("b", 40.7484, -73.9857))
        hits = geo_index.query_within_radius(EMPIRE_STATE, 15, exclude_user_id="a")
        assert [h.user_id for h in hits] == ["b"]
        assert hits[0].distance_m == 0.0

    def test_radius_zero_only_exact_points(self, geo_index):
        geo_index.upsert_position(_pos("same", 40.7484, -73.9857))
        geo_index.upsert_position(_pos("near", 40.7485, -73.9857))
        hits = geo_index.query_within_radius(EMPIRE_STATE, 0)
        assert [h.user_id for h in hits] == ["same"]

    def test_results_match_brute_force(self, geo_index):
        """Every hit is within R, sorted ascending, and nothing within R is missed."""
        rng = random.Random(7)
        points = {}
        for i in range(300):
            lat = EMPIRE_STATE.latitude + rng.uniform(-0.03, 0.03)
            lon = EMPIRE_STATE.longitude + rng.uniform(-0.03, 0.03)
            points[f"u{i:03d}"] = (lat, lon)
            geo_index.upsert_position(_pos(f"u{i:03d}", lat, lon))

        for radius in (0, 150, 800, 2500):
            hits = geo_index.query_within_radius(EMPIRE_STATE, radius)
            distances = [h.distance_m for h in hits]
            assert distances == sorted(distances)
            assert all(d <= radius for d in distances)
            expected = {
                uid for uid, (lat, lon) in points.items()
                if haversine_m(EMPIRE_STATE.latitude, EMPIRE_STATE.longitude, lat, lon) <= radius
            }
            assert {h.user_id for h in hits} == expected

    def test_ties_broken_by_user_id(self, geo_index):
        for uid in ("zed", "amy", "max"):
            geo_index.upsert_position(_pos(uid, 40.7484, -73.9857))
        hits = geo_index.query_within_radius(EMPIRE_STATE, 10)
        assert [h.user_id for h in hits] == ["amy", "max", "zed"]

    def test_excludes_requester(self, geo_index):
        geo_index.upsert_position(_pos("me", 40.7484, -73.9857))
        assert geo_index.query_within_radius(EMPIRE_STATE, 10, exclude_user_id="me") == []

    def test_across_antimeridian(self, geo_index):
        geo_index.upsert_position(_pos("east", 0.0, 179.9999))
        hits = geo_index.query_within_radius(GeoPoint(0.0, -179.9999), 50)
        assert [h.user_id for h in hits] == ["east"]
        assert hits[0].distance_m < 25

    def test_city_wide_radius(self, geo_index):
        geo_index.upsert_position(_pos("brooklyn", 40.6892, -74.0445))
        geo_index.upsert_position(_pos("boston", 42.3601, -71.0589))
        hits = geo_index.query_within_radius(EMPIRE_STATE, 50_000)
        assert [h.user_id for h in hits] == ["brooklyn"]

    @pytest.mark.parametrize("radius", [-1, float("inf"), float("nan")])
    def test_bad_radius_rejected(self, geo_index, radius):
        geo_index.upsert_position(_pos("alex", 40.7484, -73.9857))
        with pytest.raises(InvalidInput):
            geo_index.query_within_radius(EMPIRE_STATE, radius)

    def test_invalid_center_rejected(self, geo_index):
        with pytest.raises(InvalidInput):
            geo_index.query_within_radius(GeoPoint(95.0, 0.0), 10)


class TestUpsertAndRemove:
    """Tests for writes."""

    def test_invalid_coordinates_leave_index_untouched(self, geo_index):
        geo_index.upsert_position(_pos("a", 40.7484, -73.9857))
        with pytest.raises(InvalidInput):
            geo_index.upsert_position(_pos("a", 123.0, -73.9857))
        assert geo_index.get("a").latitude == 40.7484
        with pytest.raises(InvalidInput):
            geo_index.upsert_position(_pos("b", 0.0, -200.0))
        assert len(geo_index) == 1

    def test_move_between_cells(self, geo_index):
        geo_index.upsert_position(_pos("a", 40.7484, -73.9857))
        geo_index.upsert_position(_pos("a", 40.7794, -73.9632))  # The Met
        assert geo_index.query_within_radius(EMPIRE_STATE, 100) == []
        hits = geo_index.query_within_radius(GeoPoint(40.7794, -73.9632), 100)
        assert [h.user_id for h in hits] == ["a"]
        assert len(geo_index) == 1

    def test_timestamps(self, geo_index, clock):
        first = geo_index.upsert_position(_pos("a", 40.7484, -73.9857))
        clock.advance(minutes=5)
        second = geo_index.upsert_position(_pos("a", 40.7485, -73.9857))
        assert second.active_since == first.active_since
        assert second.last_updated == clock.now
        assert second.last_updated > first.last_updated

    def test_active_since_resets_after_lapse(self, geo_index, clock):
        first = geo_index.upsert_position(_pos("a", 40.7484, -73.9857))
        clock.advance(minutes=30)
        second = geo_index.upsert_position(_pos("a", 40.7484, -73.9857))
        assert second.active_since > first.active_since

    def test_labels_are_stored(self, geo_index):
        stored = geo_index.upsert_position(
            _pos("a", 40.7484, -73.9857, venue_id="The Rooftop Bar", city_id="New York City")
        )
        assert stored.venue_id == "The Rooftop Bar"
        assert geo_index.get("a").city_id == "New York City"

    def test_remove(self, geo_index):
        geo_index.upsert_position(_pos("a", 40.7484, -73.9857))
        assert geo_index.remove_position("a") is True
        assert geo_index.remove_position("a") is False
        assert geo_index.query_within_radius(EMPIRE_STATE, 100) == []


class TestExpireStale:
    """Tests for the inactivity sweep."""

    def test_expires_only_stale(self, geo_index, clock):
        geo_index.upsert_position(_pos("old", 40.7484, -73.9857))
        clock.advance(minutes=10)
        geo_index.upsert_position(_pos("fresh", 40.7484, -73.9857))
        clock.advance(minutes=6)
        removed = geo_index.expire_stale(clock.now, timedelta(minutes=15))
        assert removed == ["old"]
        assert [h.user_id for h in geo_index.query_within_radius(EMPIRE_STATE, 10)] == ["fresh"]

    def test_second_call_is_noop(self, geo_index, clock):
        geo_index.upsert_position(_pos("a", 40.7484, -73.9857))
        clock.advance(hours=1)
        assert geo_index.expire_stale(clock.now, timedelta(minutes=15)) == ["a"]
        assert geo_index.expire_stale(clock.now, timedelta(minutes=15)) == []

    def test_stale_hidden_before_sweep(self, geo_index, clock):
        geo_index.upsert_position(_pos("a", 40.7484, -73.9857))
        clock.advance(minutes=16)
        assert geo_index.query_within_radius(EMPIRE_STATE, 10) == []
        assert geo_index.get("a") is None
        assert len(geo_index) == 1


class TestConcurrentWrites:
    """Writers for different users run in parallel without losing records."""

    def test_parallel_moves(self, geo_index):
        def walk(i):
            uid = f"walker{i}"
            for step in range(25):
                geo_index.upsert_position(
                    _pos(uid, 40.70 + 0.002 * step, -73.99 + 0.0001 * i)
                )
                geo_index.query_within_radius(EMPIRE_STATE, 3000)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(walk, range(16)))

        assert len(geo_index) == 16
        final = geo_index.query_within_radius(GeoPoint(40.748, -73.99), 500)
        assert {h.user_id for h in final} == {f"walker{i}" for i in range(16)}
        # Each user sits in exactly one cell after all moves.
        members = [uid for bucket in geo_index._cells.values() for uid in bucket]
        assert sorted(members) == sorted(f"walker{i}" for i in range(16))

    def test_move_during_query_is_not_lost(self, geo_index):
        class MoveBeforeHold(KeyedLock):
            """Runs ``action`` once, right before the first hold covering ``trigger``."""

            action = None
            trigger = None

            @contextmanager
            def hold(self, *keys):
                if self.action is not None and self.trigger in keys:
                    action, self.action = self.action, None
                    action()
                with super().hold(*keys):
                    yield

        locks = MoveBeforeHold()
        geo_index._cell_locks = locks
        # Enough occupied cells that the query walks cell buckets.
        for i in range(40):
            geo_index.upsert_position(_pos(f"far{i}", -60.0 + 3 * i, 100.0))
        geo_index.upsert_position(_pos("mover", 40.7484, -73.9850))

        center = GeoPoint(40.7484, -73.9900)
        assert geo_index.grid.cell_count_for(center.latitude, center.longitude, 1000) <= len(
            geo_index._cells
        )
        locks.trigger = geo_index.grid.cell_of(40.7484, -73.9850)
        locks.action = lambda: geo_index.upsert_position(_pos("mover", 40.7484, -73.9950))

        hits = geo_index.query_within_radius(center, 1000)

        assert locks.action is None
        assert [h.user_id for h in hits] == ["mover"]
        assert hits[0].position.longitude == -73.9950
        members = [uid for bucket in geo_index._cells.values() for uid in bucket]
        assert members.count("mover") == 1
