"""Database utilities."""

from aida_bot.db.base import Base
from aida_bot.db.session import create_engine, create_session_maker

__all__ = ["Base", "create_engine", "create_session_maker"]
