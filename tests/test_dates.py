from __future__ import annotations

from datetime import date as Date
from datetime import timedelta

import pytest

from habits.services.dates import (
    MALFORMED_DATE,
    MalformedDateError,
    day_delta,
    format_date,
    format_legacy,
    parse,
    parse_any,
    parse_many,
    to_sort_key,
)


def test_format_date_zero_pads_day() -> None:
    assert format_date(Date(2026, 1, 8)) == "08 Jan 2026"
    assert format_date(Date(2025, 12, 31)) == "31 Dec 2025"


def test_parse_accepts_compact_and_legacy_forms() -> None:
    assert parse("08 Jan 2026") == Date(2026, 1, 8)
    assert parse("Thu, 8 Jan, 2026") == Date(2026, 1, 8)
    assert parse("Thu, 8 Jan, 2026") == parse("08 Jan 2026")


def test_parse_ignores_weekday_token() -> None:
    # 8 Jan 2026 is a Thursday; the stored weekday is not trusted.
    assert parse("Mon, 8 Jan, 2026") == Date(2026, 1, 8)


def test_round_trip_across_a_leap_year() -> None:
    day = Date(2024, 1, 1)
    while day.year == 2024:
        assert parse(format_date(day)) == day
        assert parse(format_legacy(day)) == day
        day += timedelta(days=1)


def test_format_legacy_matches_stored_shape() -> None:
    assert format_legacy(Date(2025, 1, 8)) == "Wed, 8 Jan, 2025"


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "08 Foo 2026",
        "Jan 2026",
        "31 Feb 2026",
        "xx Jan 2026",
        "08 Jan 2026 extra tokens",
        "08 jan 2026",
        "01 Jan 99999999999999999999",
        "001 Jan 2026",
        "08 Jan 26",
        "08 Jan 0000",
    ],
)
def test_parse_rejects_malformed_input(raw: str) -> None:
    with pytest.raises(MalformedDateError) as exc:
        parse(raw)

    assert exc.value.code == MALFORMED_DATE
    assert exc.value.raw == raw


def test_parse_any_accepts_iso_and_dates() -> None:
    assert parse_any("2026-01-08") == Date(2026, 1, 8)
    assert parse_any(Date(2026, 1, 8)) == Date(2026, 1, 8)
    assert parse_any("08 Jan 2026") == Date(2026, 1, 8)

    with pytest.raises(MalformedDateError):
        parse_any("2026-02-30")


def test_sort_key_and_delta_cross_month_and_year_boundaries() -> None:
    assert to_sort_key(Date(2026, 1, 8)) == 20260108
    assert to_sort_key(Date(2025, 12, 31)) < to_sort_key(Date(2026, 1, 1))
    assert day_delta(Date(2025, 12, 31), Date(2026, 1, 1)) == 1
    assert day_delta(Date(2024, 2, 28), Date(2024, 3, 1)) == 2
    assert day_delta(Date(2026, 1, 8), Date(2026, 1, 8)) == 0


def test_parse_many_skips_malformed_and_reports_warning() -> None:
    parsed = parse_many(["08 Jan 2026", "not a date", "Fri, 9 Jan, 2026", None])

    assert parsed.dates == [Date(2026, 1, 8), Date(2026, 1, 9)]
    assert [w.raw for w in parsed.warnings] == ["not a date", "None"]
    assert all(w.code == MALFORMED_DATE for w in parsed.warnings)


def test_parse_many_survives_out_of_range_numbers() -> None:
    parsed = parse_many(["08 Jan 2026", "01 Jan 99999999999999999999", "2026-01-999"])

    assert parsed.dates == [Date(2026, 1, 8)]
    assert [w.raw for w in parsed.warnings] == ["01 Jan 99999999999999999999", "2026-01-999"]


def test_parse_rejects_oversized_number_tokens() -> None:
    raw = "Thu, 8 Jan, " + "9" * 5000

    with pytest.raises(MalformedDateError):
        parse(raw)
