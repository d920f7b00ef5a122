from datetime import datetime
from pydantic import BaseModel, Field


class CourtBase(BaseModel):
    name: str
    short_name: str | None = None
    court_type: str | None = None
    is_active: bool = True
    base_price: float = Field(default=0, ge=0)
    rating: float = 0
    dimensions: str | None = None
    image_url: str | None = None


class CourtCreate(CourtBase):
    meta: dict | None = None


class Court(CourtBase):
    id: int
    meta: dict | None = None

    class Config:
        from_attributes = True


class BookedWindow(BaseModel):
    start_time: datetime
    end_time: datetime


class CourtSlots(BaseModel):
    court_id: int
    day: str
    booked: list[BookedWindow]
