from app.config import Settings


def test_database_url_overrides_postgres_parts():
    settings = Settings(DATABASE_URL="sqlite+pysqlite:///./local.db", POSTGRES_HOST="db")
    assert settings.sqlalchemy_url == "sqlite+pysqlite:///./local.db"


def test_postgres_url_is_assembled_from_parts():
    settings = Settings(
        POSTGRES_USER="court",
        POSTGRES_PASSWORD="pw",
        POSTGRES_HOST="db",
        POSTGRES_PORT="6543",
        POSTGRES_DB="bookings",
    )
    assert settings.sqlalchemy_url == "postgresql+psycopg2://court:pw@db:6543/bookings"


def test_cors_origins_are_split():
    settings = Settings(CORS_ORIGINS="http://a.test, http://b.test,")
    assert settings.cors_origin_list == ["http://a.test", "http://b.test"]
    assert settings.booking_tx_timeout_ms == 5000
