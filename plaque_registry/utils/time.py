"""UTC timestamp helpers.

Timestamps are persisted as fixed-width ISO 8601 strings with a ``Z`` suffix
(always with microseconds) so that string order matches time order.
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc_z(dt: datetime) -> str:
    """Format a datetime as ``YYYY-MM-DDTHH:MM:SS.ffffffZ``.

    Naive datetimes are taken to already be in UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc)
    return dt_utc.isoformat(timespec="microseconds").replace("+00:00", "Z")


def utc_now_z() -> str:
    return to_utc_z(utc_now())
