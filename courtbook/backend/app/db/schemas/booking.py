from datetime import datetime
from pydantic import BaseModel, Field, model_validator


class EquipmentRequestIn(BaseModel):
    equipment_id: int
    quantity: int = Field(default=0, ge=0)


class BookingCreate(BaseModel):
    user_id: int | None = None
    court_id: int
    start_time: datetime
    end_time: datetime
    equipment_requests: list[EquipmentRequestIn] = Field(default_factory=list)
    coach_id: int | None = None

    @model_validator(mode="after")
    def check_window(self) -> "BookingCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class RuleAdjustment(BaseModel):
    rule_name: str
    kind: str
    value: float
    applied_amount: float


class PriceQuote(BaseModel):
    court_id: int
    base_price: float
    price_after_rules: float
    rule_adjustments: list[RuleAdjustment]


class BookingEquipmentItem(BaseModel):
    equipment_id: int
    quantity: int

    class Config:
        from_attributes = True


class Booking(BaseModel):
    id: int
    user_id: int
    court_id: int
    coach_id: int | None = None
    start_time: datetime
    end_time: datetime
    status: str
    equipment_items: list[BookingEquipmentItem] = Field(default_factory=list)
    base_price: float
    price_after_rules: float
    rule_adjustments: list[RuleAdjustment] = Field(default_factory=list)
    equipment_fee: float
    coach_fee: float
    total: float
    created_at: datetime | None = None
    cancelled_at: datetime | None = None

    class Config:
        from_attributes = True
