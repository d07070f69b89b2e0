"""Database package: engine, ORM models, and CRUD facade."""

from problemscout.db.engine import create_db_engine, create_session_factory
from problemscout.db.facade import Database, PaymentDict
from problemscout.db.orm import Base, PaymentRow, ProfileRow, SearchRow

__all__ = [
    "Base",
    "Database",
    "PaymentDict",
    "PaymentRow",
    "ProfileRow",
    "SearchRow",
    "create_db_engine",
    "create_session_factory",
]
