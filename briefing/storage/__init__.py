"""Storage layer - asyncpg connection pool shared by the repositories."""

from briefing.storage.database import Database

__all__ = ["Database"]
