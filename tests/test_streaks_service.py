from __future__ import annotations

from datetime import date as Date
from datetime import timedelta

from habits.services.dates import format_date, format_legacy
from habits.services.streaks import compute_streaks, is_due, summarize


def _days(start: Date, count: int) -> list[Date]:
    return [start + timedelta(days=i) for i in range(count)]


def test_compute_streaks_returns_five_for_five_consecutive_days() -> None:
    result = compute_streaks(_days(Date(2026, 2, 11), 5), Date(2026, 2, 15))

    assert result.current_streak == 5
    assert result.longest_streak == 5


def test_compute_streaks_keeps_current_when_today_not_logged_yet() -> None:
    result = compute_streaks(_days(Date(2026, 2, 10), 5), Date(2026, 2, 15))

    assert result.current_streak == 5
    assert result.longest_streak == 5


def test_compute_streaks_resets_current_after_two_day_gap() -> None:
    result = compute_streaks(_days(Date(2026, 2, 10), 5), Date(2026, 2, 16))

    assert result.current_streak == 0
    assert result.longest_streak == 5


def test_compute_streaks_empty_history() -> None:
    result = compute_streaks([], Date(2026, 2, 15))

    assert result.current_streak == 0
    assert result.longest_streak == 0


def test_compute_streaks_is_order_independent() -> None:
    days = _days(Date(2026, 2, 1), 3) + _days(Date(2026, 2, 10), 2)
    now = Date(2026, 2, 11)

    assert compute_streaks(days, now) == compute_streaks(list(reversed(days)), now)
    assert compute_streaks(days, now).longest_streak == 3
    assert compute_streaks(days, now).current_streak == 2


def test_compute_streaks_ignores_duplicate_days() -> None:
    days = [Date(2026, 2, 10), Date(2026, 2, 10), Date(2026, 2, 11)]

    result = compute_streaks(days, Date(2026, 2, 11))

    assert result.current_streak == 2
    assert result.longest_streak == 2


def test_compute_streaks_runs_across_month_and_year_boundaries() -> None:
    days = _days(Date(2025, 12, 30), 4)

    result = compute_streaks(days, Date(2026, 1, 2))

    assert result.current_streak == 4
    assert result.longest_streak == 4


def test_longest_never_below_current() -> None:
    now = Date(2026, 3, 1)
    histories = [
        _days(Date(2026, 2, 20), 10),
        _days(Date(2026, 1, 1), 3) + _days(Date(2026, 2, 27), 2),
        [Date(2026, 2, 28)],
    ]
    for days in histories:
        result = compute_streaks(days, now)
        assert result.longest_streak >= result.current_streak


def test_is_due_without_completions() -> None:
    assert is_due([], Date(2026, 2, 15)) is True


def test_is_due_threshold_boundary() -> None:
    now = Date(2026, 2, 15)

    assert is_due([Date(2026, 2, 14)], now) is False
    assert is_due([Date(2026, 2, 13)], now) is True
    assert is_due([Date(2026, 2, 13)], now, threshold_days=3) is False


def test_summarize_accepts_mixed_formats_and_reports_malformed() -> None:
    now = Date(2026, 1, 10)
    raw_days = [
        format_legacy(Date(2026, 1, 8)),
        format_date(Date(2026, 1, 9)),
        format_date(Date(2026, 1, 9)),
        "garbage",
    ]

    stats = summarize(raw_days, now)

    assert stats.current_streak == 2
    assert stats.longest_streak == 2
    assert stats.total_completions == 2
    assert stats.last_completed == Date(2026, 1, 9)
    assert stats.is_due is False
    assert [w.raw for w in stats.warnings] == ["garbage"]


def test_summarize_skips_out_of_range_year() -> None:
    stats = summarize(["08 Jan 2026", "01 Jan 99999999999999999999"], Date(2026, 1, 8))

    assert stats.current_streak == 1
    assert stats.total_completions == 1
    assert [w.code for w in stats.warnings] == ["MALFORMED_DATE"]


def test_single_completion_today_counts_once() -> None:
    result = compute_streaks([Date(2026, 2, 15)], Date(2026, 2, 15))

    assert result.current_streak == 1
    assert result.longest_streak == 1


def test_single_completion_survives_one_day_then_breaks() -> None:
    day = Date(2026, 2, 15)

    assert compute_streaks([day], day + timedelta(days=1)).current_streak == 1
    assert compute_streaks([day], day + timedelta(days=2)).current_streak == 0


def test_adding_yesterday_never_lowers_current_streak() -> None:
    now = Date(2026, 2, 15)
    yesterday = now - timedelta(days=1)
    histories = [
        [],
        [now],
        [now - timedelta(days=3)],
        _days(now - timedelta(days=6), 3),
        [now - timedelta(days=2), now],
    ]
    for days in histories:
        before = compute_streaks(days, now).current_streak
        after = compute_streaks(days + [yesterday], now).current_streak
        assert after >= before


def test_adding_today_after_yesterday_extends_by_one() -> None:
    now = Date(2026, 2, 15)
    for days in (
        [now - timedelta(days=1)],
        _days(now - timedelta(days=4), 4),
        [Date(2026, 1, 1), now - timedelta(days=1)],
    ):
        before = compute_streaks(days, now).current_streak
        assert compute_streaks(days + [now], now).current_streak == before + 1


def test_gap_resets_run_but_keeps_longest() -> None:
    days = [Date(2026, 1, 1), Date(2026, 1, 2), Date(2026, 1, 3), Date(2026, 1, 10)]

    result = compute_streaks(days, Date(2026, 1, 10))

    assert (result.current_streak, result.longest_streak) == (1, 3)


def test_stale_run_reports_zero_current() -> None:
    days = [Date(2026, 1, 1), Date(2026, 1, 2), Date(2026, 1, 3)]

    result = compute_streaks(days, Date(2026, 1, 6))

    assert (result.current_streak, result.longest_streak) == (0, 3)
