from typing import Optional

from pydantic import BaseModel, Field


class Center(BaseModel):
    latitude: float
    longitude: float


class DiscoverRequest(BaseModel):
    center: Optional[Center] = None  # defaults to the caller's last position
    radius_m: Optional[float] = None
    level: Optional[str] = None  # venue / nearby / neighborhood / city
    limit: Optional[int] = None


class CandidateItem(BaseModel):
    user_id: str
    name: Optional[str] = None
    age: Optional[int] = None
    distance_m: float
    score: float
    shared_tags: list[str] = Field(default_factory=list)
    venue_id: Optional[str] = None
    neighborhood_id: Optional[str] = None
    city_id: Optional[str] = None


class DiscoverResponse(BaseModel):
    items: list[CandidateItem]
    radius_m: float
