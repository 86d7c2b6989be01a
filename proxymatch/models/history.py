"""
Proxy Match: Crossed-paths history entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True, slots=True)
class CrossedPath:
    user_id: str
    distance_m: float
    seen_at: datetime
    venue_id: Optional[str] = None
    neighborhood_id: Optional[str] = None
    city_id: Optional[str] = None
