"""SQL persistence: declarative base, per-URL engines and the account table."""

from .session import Base, get_engine, get_session, reset_engines

__all__ = ["Base", "get_engine", "get_session", "reset_engines"]
