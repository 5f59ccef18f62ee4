from datetime import datetime, timezone
from zoneinfo import ZoneInfo
from typing import Optional

from flask import current_app, has_app_context


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if not dt:
        return None

    # Treat naive DB values as UTC (SQLite drops tzinfo)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def app_tz() -> ZoneInfo:
    name = "UTC"
    if has_app_context():
        name = current_app.config.get("APP_TIMEZONE") or "UTC"
    return ZoneInfo(name)


def to_app_tz(dt: Optional[datetime]) -> Optional[datetime]:
    dt = as_utc(dt)
    if not dt:
        return None
    return dt.astimezone(app_tz())


def days_between(earlier: Optional[datetime], later: datetime) -> Optional[int]:
    """
    Whole calendar days between two instants, counted on local day boundaries.
    None if there is no earlier instant.
    """
    if earlier is None:
        return None
    return (to_app_tz(later).date() - to_app_tz(earlier).date()).days
