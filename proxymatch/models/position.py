"""
Proxy Match: Position records held by the geo-index.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True, slots=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True)
class UserPosition:
    """Latest reported location of an active user.

    Instances are immutable; every report replaces the stored record.
    """

    user_id: str
    latitude: float
    longitude: float
    venue_id: Optional[str] = None
    neighborhood_id: Optional[str] = None
    city_id: Optional[str] = None
    active_since: Optional[datetime] = None
    last_updated: Optional[datetime] = None

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude)

    def __repr__(self) -> str:
        return f"<UserPosition {self.user_id} ({self.latitude:.5f}, {self.longitude:.5f})>"


@dataclass(frozen=True, slots=True)
class NearbyPosition:
    """A query hit: the stored position plus its distance to the centre."""

    position: UserPosition
    distance_m: float

    @property
    def user_id(self) -> str:
        return self.position.user_id
