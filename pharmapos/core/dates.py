from datetime import date, datetime, time, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite drops the offset) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(value: datetime) -> datetime:
    value = as_utc(value)
    return datetime.combine(value.date(), time.min, tzinfo=timezone.utc)


def normalize_date(value):
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        value_text = value.strip()
        if not value_text:
            return None
        try:
            return date.fromisoformat(value_text)
        except ValueError:
            return None
    return None


def parse_bound(value: str, *, end_of_day: bool = False) -> datetime:
    """Parse an ISO date or datetime used as a reporting window bound.

    A bare date means midnight, or the last instant of that day when
    ``end_of_day`` is set. Raises ValueError for anything else.
    """
    value_text = value.strip()
    if not value_text:
        raise ValueError("empty date")
    if len(value_text) == 10:
        day = date.fromisoformat(value_text)
        return datetime.combine(day, time.max if end_of_day else time.min, tzinfo=timezone.utc)
    if value_text.endswith("Z"):
        value_text = value_text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(value_text))
