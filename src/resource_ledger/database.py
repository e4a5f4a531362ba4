"""Database utilities."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import Settings, get_settings


class Base(DeclarativeBase):
    """Base model for SQLAlchemy mappings."""


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # pragma: no cover - driver hook
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(settings: Optional[Settings] = None) -> Engine:
    """Build an engine for the configured database URL."""

    settings = settings or get_settings()
    url = settings.sqlalchemy_url
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": settings.busy_timeout},
            future=True,
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(url, pool_pre_ping=True, future=True)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


# Bound lazily by ``init_database`` so importing the package never touches disk.
SessionLocal: sessionmaker[Session] = sessionmaker(autoflush=False, autocommit=False, expire_on_commit=False)


def init_database(settings: Optional[Settings] = None) -> Engine:
    """Ensure that the database schema exists and bind ``SessionLocal``."""

    from . import models  # noqa: F401 - ensure models are imported

    settings = settings or get_settings()
    settings.ensure_storage()
    engine = create_db_engine(settings)
    Base.metadata.create_all(bind=engine)
    SessionLocal.configure(bind=engine)
    return engine
