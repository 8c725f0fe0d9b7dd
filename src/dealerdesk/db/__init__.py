"""Database layer for dealerdesk: SQLAlchemy 2.0 async."""

from __future__ import annotations

from dealerdesk.db.base import Base
from dealerdesk.db.engine import DatabaseManager

__all__ = ["Base", "DatabaseManager"]
