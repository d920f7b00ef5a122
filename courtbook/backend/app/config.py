from functools import lru_cache
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field


ENV_FILE_PATH = Path(".env")


class Settings(BaseModel):
    env: str = Field(default="dev", alias="ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    database_url: str = Field(default="", alias="DATABASE_URL")
    postgres_db: str = Field(default="courtbook", alias="POSTGRES_DB")
    postgres_user: str = Field(default="courtbook", alias="POSTGRES_USER")
    postgres_password: str = Field(default="courtbook", alias="POSTGRES_PASSWORD")
    postgres_host: str = Field(default="localhost", alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, alias="POSTGRES_PORT")

    jwt_secret: str = Field(default="dev-secret", alias="JWT_SECRET")
    jwt_expire_min: int = Field(default=10080, alias="JWT_EXPIRE_MIN")

    # Upper bound for lock waits and statements inside one booking transaction
    booking_tx_timeout_ms: int = Field(default=5000, alias="BOOKING_TX_TIMEOUT_MS")

    cors_origins: str = Field(default="http://localhost:3000", alias="CORS_ORIGINS")

    default_admin_email: str = Field(default="admin@courtbook.local", alias="DEFAULT_ADMIN_EMAIL")
    default_admin_password: str = Field(default="admin123", alias="DEFAULT_ADMIN_PASSWORD")

    class Config:
        populate_by_name = True

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv(dotenv_path=ENV_FILE_PATH, override=False)
    return Settings(**os.environ)
