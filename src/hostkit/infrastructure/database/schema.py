"""SQLAlchemy Core table definitions for the hostkit record store.

A record is an entity snapshot: one row per ``(record_id, field)`` pair.
Field values are always text, matching the ``str -> str`` persistence
contract.
"""

from __future__ import annotations

from sqlalchemy import Column, MetaData, Table, Text

metadata = MetaData()

records = Table(
    "records",
    metadata,
    Column("record_id", Text, primary_key=True),
    Column("field", Text, primary_key=True),
    Column("value", Text, nullable=False),
    Column("saved_at", Text, nullable=False),
)
