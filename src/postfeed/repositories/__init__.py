"""Persistence access.

Repositories wrap an AsyncSession and return frozen snapshots, never live
ORM objects. They flush but do not commit; the calling service owns the
unit of work.
"""

from datetime import datetime, timezone


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
