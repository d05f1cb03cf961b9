from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date as Date
from typing import Any, Iterable

logger = logging.getLogger(__name__)

MALFORMED_DATE = "MALFORMED_DATE"

MONTH_ABBREVIATIONS: tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)
WEEKDAY_ABBREVIATIONS: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

_MONTH_INDEX: dict[str, int] = {
    name: i + 1 for i, name in enumerate(MONTH_ABBREVIATIONS)
}


class MalformedDateError(ValueError):
    def __init__(self, raw: Any, reason: str) -> None:
        super().__init__(f"Invalid date format: {raw!r} ({reason})")
        self.raw = raw
        self.reason = reason
        self.code = MALFORMED_DATE


@dataclass(frozen=True)
class DateWarning:
    raw: str
    code: str
    message: str


@dataclass(frozen=True)
class ParsedDates:
    dates: list[Date] = field(default_factory=list)
    warnings: list[DateWarning] = field(default_factory=list)


def _to_int(token: str, raw: str, what: str, *, min_width: int, max_width: int) -> int:
    s = token.strip()
    if not (s.isascii() and s.isdigit()):
        raise MalformedDateError(raw, f"{what} is not an integer")
    if not (min_width <= len(s) <= max_width):
        raise MalformedDateError(raw, f"{what} has {len(s)} digits")
    return int(s)


def _build(raw: str, year: int, month: int, day: int) -> Date:
    try:
        return Date(year, month, day)
    except (ValueError, OverflowError):
        raise MalformedDateError(raw, "not a valid calendar date") from None


def parse(raw: str) -> Date:
    """
    Parse a stored completion day.

    Accepted shapes:
    - compact:        "08 Jan 2026"
    - legacy-verbose: "Wed, 8 Jan, 2026" (the weekday token is ignored)
    """
    if not isinstance(raw, str):
        raise MalformedDateError(raw, "not a string")
    parts = raw.split()
    if len(parts) == 4:
        day_s, month_s, year_s = parts[1], parts[2], parts[3]
    elif len(parts) == 3:
        day_s, month_s, year_s = parts
    else:
        raise MalformedDateError(raw, f"expected 3 or 4 tokens, got {len(parts)}")

    day = _to_int(day_s.rstrip(","), raw, "day", min_width=1, max_width=2)
    year = _to_int(year_s, raw, "year", min_width=4, max_width=4)
    month = _MONTH_INDEX.get(month_s.rstrip(","))
    if month is None:
        raise MalformedDateError(raw, "unknown month abbreviation")
    return _build(raw, year, month, day)


def parse_iso(raw: str) -> Date:
    # "2026-01-08"; split by hand so the result is always a plain calendar day.
    parts = raw.strip().split("-") if isinstance(raw, str) else []
    if len(parts) != 3 or len(parts[0]) != 4:
        raise MalformedDateError(raw, "expected YYYY-MM-DD")
    year = _to_int(parts[0], raw, "year", min_width=4, max_width=4)
    month = _to_int(parts[1], raw, "month", min_width=1, max_width=2)
    day = _to_int(parts[2], raw, "day", min_width=1, max_width=2)
    return _build(raw, year, month, day)


def parse_any(raw: Any) -> Date:
    if isinstance(raw, Date):
        return raw
    if isinstance(raw, str) and raw.strip()[:4].isdigit() and "-" in raw:
        return parse_iso(raw)
    return parse(raw)


def format_date(d: Date) -> str:
    return f"{d.day:02d} {MONTH_ABBREVIATIONS[d.month - 1]} {d.year:04d}"


def format_legacy(d: Date) -> str:
    weekday = WEEKDAY_ABBREVIATIONS[d.weekday()]
    return f"{weekday}, {d.day} {MONTH_ABBREVIATIONS[d.month - 1]}, {d.year:04d}"


def to_sort_key(d: Date) -> int:
    return d.year * 10000 + d.month * 100 + d.day


def day_delta(earlier: Date, later: Date) -> int:
    return later.toordinal() - earlier.toordinal()


def parse_many(raws: Iterable[Any]) -> ParsedDates:
    out = ParsedDates()
    for raw in raws:
        try:
            out.dates.append(parse_any(raw))
        except MalformedDateError as exc:
            logger.warning("Skipping malformed completion day %r: %s", raw, exc.reason)
            out.warnings.append(
                DateWarning(raw=str(raw), code=exc.code, message=str(exc))
            )
    return out
