"""Engine and session factory for the payables store"""

from typing import Any, Dict, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from payables_gateway.config import settings
from payables_gateway.infrastructure.database.models import Base


def engine_options(database_url: str) -> Dict[str, Any]:
    """Pool tuning for server databases; SQLite only needs cross-thread access"""
    if make_url(database_url).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 10,
        "pool_recycle": 3600,  # seconds
    }


engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create missing tables from the ORM metadata"""
    Base.metadata.create_all(bind=engine)


def get_db() -> Iterator[Session]:
    """One session per request, closed when the response is sent"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
