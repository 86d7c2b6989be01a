"""
Proxy Match: domain record registry.

All records are frozen dataclasses so that a reader always holds a complete,
unchanging snapshot while writers swap in replacements.
"""

from proxymatch.models.connection import (
    Connection,
    ConnectionStatus,
    InterestEdge,
    MeetingContext,
    canonical_pair,
)
from proxymatch.models.history import CrossedPath
from proxymatch.models.position import GeoPoint, NearbyPosition, UserPosition
from proxymatch.models.profile import Profile

__all__ = [
    "Connection",
    "ConnectionStatus",
    "CrossedPath",
    "GeoPoint",
    "InterestEdge",
    "MeetingContext",
    "NearbyPosition",
    "Profile",
    "UserPosition",
    "canonical_pair",
]
