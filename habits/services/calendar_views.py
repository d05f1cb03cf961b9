from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date as Date
from datetime import timedelta
from enum import Enum
from typing import Iterable

DAYS_PER_WEEK = 7
YEAR_VIEW_WEEKS = 52
YEAR_VIEW_DAYS = YEAR_VIEW_WEEKS * DAYS_PER_WEEK


class Resolution(str, Enum):
    WEEK = "WEEK"
    MONTH = "MONTH"
    YEAR = "YEAR"


@dataclass(frozen=True)
class CalendarSlot:
    date: Date | None
    completed: bool = False


@dataclass(frozen=True)
class CalendarView:
    """
    `slots` is the flat, oldest-first list of days for the view.

    `weeks` groups `slots` into runs of 7. For WEEK and MONTH each run is a
    Sunday..Saturday row. For YEAR each run is 7 consecutive days ending on
    `now`, so index i within a run is the i-th day of that chunk, not a fixed
    weekday.
    """

    resolution: Resolution
    anchor: Date
    slots: list[CalendarSlot]
    weeks: list[list[CalendarSlot]] = field(default_factory=list)

    @property
    def completed_count(self) -> int:
        return sum(1 for s in self.slots if s.date is not None and s.completed)


def sunday_index(d: Date) -> int:
    """0 for Sunday through 6 for Saturday."""
    return (d.weekday() + 1) % DAYS_PER_WEEK


def week_start(d: Date) -> Date:
    return d - timedelta(days=sunday_index(d))


def shift_month(d: Date, months: int) -> tuple[int, int]:
    idx = d.year * 12 + (d.month - 1) + months
    return idx // 12, idx % 12 + 1


def _chunk(slots: list[CalendarSlot], *, pad_tail: bool) -> list[list[CalendarSlot]]:
    weeks = [slots[i : i + DAYS_PER_WEEK] for i in range(0, len(slots), DAYS_PER_WEEK)]
    if pad_tail and weeks and len(weeks[-1]) < DAYS_PER_WEEK:
        tail = weeks[-1]
        weeks[-1] = tail + [CalendarSlot(date=None)] * (DAYS_PER_WEEK - len(tail))
    return weeks


def _slot(d: Date, completed: set[Date]) -> CalendarSlot:
    return CalendarSlot(date=d, completed=d in completed)


def week_view(completed: set[Date], now: Date) -> CalendarView:
    start = week_start(now)
    slots = [_slot(start + timedelta(days=i), completed) for i in range(DAYS_PER_WEEK)]
    return CalendarView(
        resolution=Resolution.WEEK,
        anchor=start,
        slots=slots,
        weeks=_chunk(slots, pad_tail=False),
    )


def month_view(completed: set[Date], now: Date, month_offset: int = 0) -> CalendarView:
    year, month = shift_month(now, month_offset)
    first = Date(year, month, 1)
    days_in_month = calendar.monthrange(year, month)[1]

    slots = [CalendarSlot(date=None)] * sunday_index(first)
    slots += [_slot(Date(year, month, day), completed) for day in range(1, days_in_month + 1)]
    return CalendarView(
        resolution=Resolution.MONTH,
        anchor=first,
        slots=slots,
        weeks=_chunk(slots, pad_tail=True),
    )


def year_view(completed: set[Date], now: Date) -> CalendarView:
    # Rolling window ending today; column i holds slots[7*i : 7*i + 7].
    start = now - timedelta(days=YEAR_VIEW_DAYS - 1)
    slots = [_slot(start + timedelta(days=i), completed) for i in range(YEAR_VIEW_DAYS)]
    return CalendarView(
        resolution=Resolution.YEAR,
        anchor=start,
        slots=slots,
        weeks=_chunk(slots, pad_tail=False),
    )


def bucket_for_view(
    completions: Iterable[Date],
    now: Date,
    resolution: Resolution | str,
    month_offset: int = 0,
) -> CalendarView:
    completed = set(completions)
    res = Resolution(resolution)
    if res is Resolution.WEEK:
        return week_view(completed, now)
    if res is Resolution.MONTH:
        return month_view(completed, now, month_offset)
    return year_view(completed, now)
