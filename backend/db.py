from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
import logging
from base import Base
from config import load_config

logger = logging.getLogger(__name__)

# Load DATABASE_URL from environment or use default
DATABASE_URL = load_config().DATABASE_URL

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def init_db() -> None:
    """
    Creates all catalog and promotion tables if they do not exist yet.
    """
    import schema
    Base.metadata.create_all(bind=engine)
    logger.info(f"Database schema ready at {engine.url.render_as_string(hide_password=True)}")

def get_db():
    """
    Dependency for generating a new SQLAlchemy session.

    Yields:
        An active database session.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

if __name__ == "__main__":
    init_db()
