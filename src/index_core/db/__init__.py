"""Database layer: engine, session, ORM base."""

from index_core.db.base import Base
from index_core.db.engine import get_engine, get_session, init_engine, session_scope

__all__ = ["Base", "get_engine", "get_session", "init_engine", "session_scope"]
