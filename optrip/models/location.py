from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class Waypoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Display name of the point")
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: Optional[str] = Field(None, description="Formatted address, if known")
    place_id: Optional[str] = Field(None, description="Provider place identifier")

    def as_latlng(self) -> str:
        return f"{self.latitude},{self.longitude}"
