"""
Shared column types.
JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).

Timestamps are stored as naive UTC.
"""
from datetime import datetime, timezone

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB

JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    """Current UTC time without tzinfo, matching the timestamp columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
