from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class CrossedPathResponse(BaseModel):
    user_id: str
    distance_m: float
    seen_at: datetime
    venue_id: Optional[str] = None
    neighborhood_id: Optional[str] = None
    city_id: Optional[str] = None

    model_config = {"from_attributes": True}
