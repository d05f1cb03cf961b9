from __future__ import annotations

from datetime import date as Date
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from habits.core.config import settings


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def resolve_timezone(timezone_name: str | None) -> ZoneInfo:
    for name in (timezone_name, settings.default_timezone):
        if not name:
            continue
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            continue
    return ZoneInfo("UTC")


def local_now(now_utc: datetime, timezone_name: str | None) -> datetime:
    return to_utc(now_utc).astimezone(resolve_timezone(timezone_name))


def local_today(now_utc: datetime, timezone_name: str | None) -> Date:
    # Calendar day in the user's zone; the time part is dropped, never rounded.
    return local_now(now_utc, timezone_name).date()


def local_hhmm(now_utc: datetime, timezone_name: str | None) -> str:
    return local_now(now_utc, timezone_name).strftime("%H:%M")
