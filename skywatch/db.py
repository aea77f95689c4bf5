"""Database configuration and helpers for SkyWatch."""

from __future__ import annotations

import logging
import os
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

DATABASE_URL = os.getenv("SKYWATCH_DB_URL", "sqlite:///./skywatch.db")


def build_engine(url: str) -> Engine:
    return create_engine(
        url,
        connect_args={"check_same_thread": False} if url.startswith("sqlite") else {},
    )


engine = build_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

logger = logging.getLogger("skywatch.db")


def get_db() -> Generator:
    """Yield a SQLAlchemy session and ensure it is closed."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """Create database tables if they do not exist."""

    import skywatch.db_models  # noqa: F401 - models are imported for side effects

    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.debug("Ensured tables on %s", target.url.render_as_string(hide_password=True))


__all__ = ["Base", "DATABASE_URL", "SessionLocal", "build_engine", "engine", "get_db", "init_db"]
