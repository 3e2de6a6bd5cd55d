from datetime import datetime, timezone
from base import Base


def as_utc(value: datetime) -> datetime:
    """
    Normalizes a datetime to an aware UTC value.

    SQLite hands back naive datetimes; they are stored as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def clear_database():
    """
    Wipes all catalog and promotion data and recreates the schema.

    Used by the reset script to return a demo environment to a clean state.
    """
    import schema  # Ensure all models are registered with Base
    from db import engine
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
