from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from ..config import get_settings

settings = get_settings()


def create_db_engine(url: str, *, timeout_ms: int | None = None, **kwargs) -> Engine:
    """Build an engine whose transactions are safe for read-then-insert booking.

    On SQLite the driver's implicit BEGIN is replaced by ``BEGIN IMMEDIATE`` so a
    transaction takes the database write lock before its first read; competing
    writers wait up to ``timeout_ms`` and then fail with ``OperationalError``.
    """
    timeout_ms = settings.booking_tx_timeout_ms if timeout_ms is None else timeout_ms
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("timeout", timeout_ms / 1000)
        engine = create_engine(url, future=True, connect_args=connect_args, **kwargs)

        @event.listens_for(engine, "connect")
        def _configure_sqlite(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None
            # SQLite ignores ON DELETE clauses unless asked per connection
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine
    return create_engine(url, future=True, pool_pre_ping=True, **kwargs)


engine = create_db_engine(settings.sqlalchemy_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
Base = declarative_base()


def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
