from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import get_settings

Base = declarative_base()


def make_engine(db_url: str, **kwargs) -> Engine:
    connect_args = {}
    if db_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        database = make_url(db_url).database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(db_url, connect_args=connect_args, future=True, **kwargs)


def init_db(bind: Engine) -> None:
    """Create the saved-form tables if they don't exist yet."""
    from . import models  # noqa: F401  registers the tables on Base

    Base.metadata.create_all(bind=bind)


settings = get_settings()

engine = make_engine(settings.db_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
