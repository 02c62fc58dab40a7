"""Database connection and session management."""

from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from clinic_fhir.config import get_settings
from clinic_fhir.models import Base
from clinic_fhir.utils.logging import get_logger

logger = get_logger(__name__)


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine with settings appropriate for the backend."""
    settings = get_settings()
    kwargs: Dict[str, Any] = {"echo": echo}

    if database_url.startswith("sqlite"):
        # SQLite doesn't support these pool settings
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
            pool_recycle=3600,
        )

    return create_engine(database_url, **kwargs)


settings = get_settings()

sync_engine = build_engine(settings.database_url, echo=settings.debug)

SessionLocal = sessionmaker(
    bind=sync_engine,
    class_=Session,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped session, committing on success."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except SQLAlchemyError:
        logger.error("database_error_rollback", exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()


def init_db(engine: Engine = sync_engine) -> None:
    """Initialize database with tables."""
    Base.metadata.create_all(bind=engine)
