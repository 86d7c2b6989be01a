"""Shared pytest fixtures for Proxy Match tests."""
from datetime import datetime, timedelta, timezone

import pytest

from proxymatch.config import Settings
from proxymatch.services.connection_service import ConnectionService
from proxymatch.services.geo_index import GeoIndex
from proxymatch.services.interest_graph import InterestGraph
from proxymatch.services.matching_service import MatchingService
from proxymatch.services.profile_service import ProfileService, TagExtractor
from proxymatch.services.session_facade import build_session


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start=datetime(2025, 6, 1, 20, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


# A slice of the demo "nearby users" around Chelsea, New York.
SAMPLE_USERS = [
    {
        "user_id": "alex", "name": "Alex Rivera", "age": 24,
        "bio": "Music lover. Coffee enthusiast. Always down for spontaneous adventures.",
        "latitude": 40.7484, "longitude": -73.9857,
        "venue_id": "The Rooftop Bar", "neighborhood_id": "Chelsea", "city_id": "New York City",
    },
    {
        "user_id": "jordan", "name": "Jordan Chen", "age": 26,
        "bio": "Photographer by day, DJ by night. Let's create memories!",
        "latitude": 40.7484, "longitude": -73.9857,
        "venue_id": "The Rooftop Bar", "neighborhood_id": "Chelsea", "city_id": "New York City",
    },
    {
        "user_id": "riley", "name": "Riley Morgan", "age": 25,
        "bio": "Tech nerd who loves dancing. Yes, both can coexist.",
        "latitude": 40.7486, "longitude": -73.9855,
        "venue_id": "Lobby Lounge", "neighborhood_id": "Chelsea", "city_id": "New York City",
    },
    {
        "user_id": "taylor", "name": "Taylor Kim", "age": 28,
        "bio": "Yoga instructor. Plant mom. Sunset chaser.",
        "latitude": 40.7490, "longitude": -73.9850,
        "venue_id": "High Line Park", "neighborhood_id": "Chelsea", "city_id": "New York City",
    },
    {
        "user_id": "reese", "name": "Reese Cooper", "age": 26,
        "bio": "Music producer. Vinyl collector. Night owl.",
        "latitude": 40.7168, "longitude": -73.9861,
        "venue_id": "Output Brooklyn", "neighborhood_id": "Williamsburg", "city_id": "New York City",
    },
]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(
        GEO_CELL_SIZE_DEGREES=0.01,
        POSITION_TTL_SECONDS=900,
        DECLINE_COOLDOWN_SECONDS=86400,
        CROSSED_PATHS_LIMIT=50,
    )


@pytest.fixture
def geo_index(clock):
    return GeoIndex(cell_size_deg=0.01, ttl=timedelta(minutes=15), clock=clock)


@pytest.fixture
def interest_graph(clock):
    return InterestGraph(clock=clock)


@pytest.fixture
def connection_service(interest_graph, clock):
    return ConnectionService(interest_graph, cooldown=timedelta(hours=24), clock=clock)


@pytest.fixture
def profile_service(settings):
    return ProfileService(TagExtractor(settings.interest_vocabulary))


@pytest.fixture
def matching_service(geo_index, connection_service, profile_service):
    return MatchingService(
        geo_index, connection_service, profile_service, tag_weight=10.0, distance_divisor=100.0
    )


@pytest.fixture
def session(settings, clock):
    return build_session(settings, clock=clock)


@pytest.fixture
def seeded_session(session):
    """Session with every sample user registered and reporting a position."""
    for user in SAMPLE_USERS:
        session.upsert_profile(user["user_id"], user["name"], user["age"], user["bio"])
        session.report_position(
            user["user_id"],
            user["latitude"],
            user["longitude"],
            venue_id=user["venue_id"],
            neighborhood_id=user["neighborhood_id"],
            city_id=user["city_id"],
        )
    session.upsert_profile("me", "Sam Taylor", 23, "Art student who loves music and coffee.")
    session.report_position("me", 40.7484, -73.9857, venue_id="The Rooftop Bar",
                            neighborhood_id="Chelsea", city_id="New York City")
    return session


@pytest.fixture
def sample_users():
    return SAMPLE_USERS
