from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from . import db_models
from .settings import get_portal_settings

logger = logging.getLogger(__name__)

DEFAULT_SQLITE_PATH = Path("./var/storage/newsroom.db")

# Columns added after the first release; older database files get them on startup.
ARTICLE_MIGRATIONS: dict[str, str] = {
    "ticker": "BOOLEAN DEFAULT 0",
    "hero1_enabled": "BOOLEAN DEFAULT 0",
    "hero1_slot": "VARCHAR(32)",
    "hero2_enabled": "BOOLEAN DEFAULT 0",
    "hero2_slot": "VARCHAR(32)",
    "hero3_enabled": "BOOLEAN DEFAULT 0",
    "hero3_slot": "VARCHAR(32)",
}


def _make_engine() -> Engine:
    database_url = get_portal_settings().database_url
    if not database_url:
        DEFAULT_SQLITE_PATH.parent.mkdir(parents=True, exist_ok=True)
        database_url = f"sqlite:///{DEFAULT_SQLITE_PATH}"
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    engine = create_engine(
        database_url,
        future=True,
        echo=False,
        connect_args=connect_args,
        pool_pre_ping=True,
    )
    return engine


engine = _make_engine()
SessionLocal = sessionmaker(
    bind=engine, autocommit=False, autoflush=False, future=True, expire_on_commit=False
)


def init_db() -> None:
    db_models.Base.metadata.create_all(bind=engine)
    _ensure_article_columns(engine)


def _ensure_article_columns(engine: Engine) -> None:
    inspector = inspect(engine)
    columns = {col["name"] for col in inspector.get_columns("article")}
    missing = [name for name in ARTICLE_MIGRATIONS if name not in columns]
    if not missing:
        return
    with engine.connect() as conn:
        for name in missing:
            conn.execute(text(f"ALTER TABLE article ADD COLUMN {name} {ARTICLE_MIGRATIONS[name]}"))
        conn.commit()
    logger.info("database.migrated", extra={"table": "article", "columns": missing})


@contextmanager
def get_session() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def session_dependency() -> Generator[Session, None, None]:
    with get_session() as session:
        yield session
