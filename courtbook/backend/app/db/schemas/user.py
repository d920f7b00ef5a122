from datetime import datetime
from pydantic import BaseModel, Field, field_validator


class UserBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str
    phone: str | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        local, _, domain = normalized.partition("@")
        if not local or "." not in domain:
            raise ValueError("Invalid email address")
        return normalized


class UserCreate(UserBase):
    password: str = Field(min_length=4)


class User(UserBase):
    id: int
    role: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True
