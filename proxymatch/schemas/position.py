from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class PositionReport(BaseModel):
    latitude: float
    longitude: float
    venue_id: Optional[str] = None
    neighborhood_id: Optional[str] = None
    city_id: Optional[str] = None


class PositionResponse(BaseModel):
    user_id: str
    latitude: float
    longitude: float
    venue_id: Optional[str] = None
    neighborhood_id: Optional[str] = None
    city_id: Optional[str] = None
    active_since: datetime
    last_updated: datetime

    model_config = {"from_attributes": True}
