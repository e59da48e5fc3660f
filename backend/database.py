from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from backend.config import settings
from backend.errors import StorageError


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(settings.database_url, connect_args=_connect_args(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db():
    """Create all tables"""
    import backend.models  # noqa: F401  registers models on Base

    Base.metadata.create_all(bind=engine)


def commit_or_rollback(db: Session) -> None:
    """Commit the pending pass, or roll it back entirely and raise StorageError"""
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError(f"Failed to persist changes: {exc}") from exc


@contextmanager
def storage_pass(db: Session) -> Generator[Session, None, None]:
    """Run a read/write pass; any database failure rolls it back and becomes StorageError"""
    try:
        yield db
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError(f"Storage failure during pass: {exc}") from exc
