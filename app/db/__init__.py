"""Database module."""

from app.db.base import Base
from app.db.session import async_session_maker, close_db, get_db, init_db

__all__ = ["Base", "async_session_maker", "close_db", "get_db", "init_db"]
