from pydantic import BaseModel


class Coach(BaseModel):
    id: int
    name: str
    experience_years: int = 0
    hourly_rate: float
    is_active: bool = True
    notes: str | None = None

    class Config:
        from_attributes = True


class Equipment(BaseModel):
    id: int
    name: str
    sku: str | None = None
    total_count: int
    price_per_unit: float
    is_active: bool = True

    class Config:
        from_attributes = True
