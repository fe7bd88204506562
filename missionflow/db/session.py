from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from missionflow.core.config import get_settings
from missionflow.db.base import Base

settings = get_settings()

connect_args = {"check_same_thread": False} if settings.is_sqlite else {}

engine = create_engine(settings.database_url, connect_args=connect_args, pool_pre_ping=True)
SessionLocal = sessionmaker(autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    """Create all tables that do not exist yet."""
    import missionflow.db.models  # noqa: F401  registers the models on Base

    Base.metadata.create_all(bind=bind or engine)
