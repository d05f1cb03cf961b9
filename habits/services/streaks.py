from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date as Date
from typing import Any, Iterable

from habits.services.dates import DateWarning, day_delta, parse_many, to_sort_key

DEFAULT_DUE_THRESHOLD_DAYS = 2

# A streak survives one day without a completion ("not logged today yet").
_STREAK_BREAK_GAP_DAYS = 2


@dataclass(frozen=True)
class StreakResult:
    current_streak: int
    longest_streak: int


@dataclass(frozen=True)
class HabitStats:
    current_streak: int
    longest_streak: int
    is_due: bool
    total_completions: int
    last_completed: Date | None
    warnings: list[DateWarning] = field(default_factory=list)


def compute_streaks(completions: Iterable[Date], now: Date) -> StreakResult:
    dates = sorted(completions, key=to_sort_key)
    if not dates:
        return StreakResult(current_streak=0, longest_streak=0)

    run = 0
    longest = 0
    prev: Date | None = None
    for day in dates:
        if prev is None:
            run = 1
        else:
            delta = day_delta(prev, day)
            if delta == 1:
                run += 1
            elif delta > 1:
                run = 1
        prev = day
        if run > longest:
            longest = run

    current = run
    if day_delta(dates[-1], now) >= _STREAK_BREAK_GAP_DAYS:
        current = 0

    return StreakResult(current_streak=current, longest_streak=longest)


def is_due(
    completions: Iterable[Date],
    now: Date,
    threshold_days: int = DEFAULT_DUE_THRESHOLD_DAYS,
) -> bool:
    last = max(completions, key=to_sort_key, default=None)
    if last is None:
        return True
    return day_delta(last, now) >= threshold_days


def summarize(
    raw_days: Iterable[Any],
    now: Date,
    *,
    threshold_days: int = DEFAULT_DUE_THRESHOLD_DAYS,
) -> HabitStats:
    parsed = parse_many(raw_days)
    unique = set(parsed.dates)
    streaks = compute_streaks(unique, now)
    return HabitStats(
        current_streak=streaks.current_streak,
        longest_streak=streaks.longest_streak,
        is_due=is_due(unique, now, threshold_days),
        total_completions=len(unique),
        last_completed=max(unique, key=to_sort_key, default=None),
        warnings=parsed.warnings,
    )
