from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_after(moment: datetime | None, deadline: datetime | None) -> bool:
    """Strictly later than the deadline; missing values are never late."""
    if moment is None or deadline is None:
        return False
    return as_utc(moment) > as_utc(deadline)
