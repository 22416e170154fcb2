"""SQLite database engine and schema via SQLAlchemy Core."""

from hostkit.infrastructure.database.engine import create_db_engine, init_database
from hostkit.infrastructure.database.schema import metadata, records

__all__ = [
    "create_db_engine",
    "init_database",
    "metadata",
    "records",
]
