"""Engine/session helpers for the SQL backend, one engine per database URL."""
from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from account_api.core.config import get_settings

Base = declarative_base()

_factories: dict[str, sessionmaker] = {}
_lock = Lock()


def _resolve_url(database_url: Optional[str]) -> str:
    url = (database_url or get_settings().database_url or "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL must be configured to use the SQL backend.")
    return url


def _factory(database_url: Optional[str]) -> sessionmaker:
    url = _resolve_url(database_url)
    with _lock:
        factory = _factories.get(url)
        if factory is None:
            connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
            engine = create_engine(url, future=True, pool_pre_ping=True, connect_args=connect_args)
            factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
            _factories[url] = factory
        return factory


def get_engine(database_url: Optional[str] = None) -> Engine:
    """Engine for ``database_url``; without one, the configured DATABASE_URL."""
    return _factory(database_url).kw["bind"]


@contextmanager
def get_session(database_url: Optional[str] = None) -> Session:
    session: Session = _factory(database_url)()
    try:
        yield session
    finally:
        session.close()


def reset_engines() -> None:
    """Dispose and forget every engine created so far."""
    with _lock:
        factories = list(_factories.values())
        _factories.clear()
    for factory in factories:
        factory.kw["bind"].dispose()
