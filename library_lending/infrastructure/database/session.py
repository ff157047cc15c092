"""Database session management with connection pooling"""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from library_lending.config import settings

# Connection pool: max 20 connections, recycle after 1 hour to avoid stale connections
engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,  # Verify connections before using
    pool_size=10,
    max_overflow=10,
    pool_recycle=3600,
)

if engine.dialect.name == "postgresql":

    @event.listens_for(engine, "begin")
    def _apply_timeouts(conn):
        """Bound lock waits and statements so a stuck transaction rolls back instead of hanging"""
        timeout = int(settings.db_lock_timeout_ms)
        conn.exec_driver_sql(f"SET LOCAL lock_timeout = {timeout}")
        conn.exec_driver_sql(f"SET LOCAL statement_timeout = {timeout}")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """Dependency injection for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
