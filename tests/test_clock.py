from __future__ import annotations

from datetime import date as Date
from datetime import datetime, timezone

import pytest

from habits.services import clock


def test_local_today_crosses_midnight_by_timezone() -> None:
    now = datetime(2026, 1, 10, 23, 30, tzinfo=timezone.utc)

    assert clock.local_today(now, "UTC") == Date(2026, 1, 10)
    assert clock.local_today(now, "Asia/Tokyo") == Date(2026, 1, 11)
    assert clock.local_today(now, "America/Los_Angeles") == Date(2026, 1, 10)


def test_naive_datetimes_are_treated_as_utc() -> None:
    assert clock.local_hhmm(datetime(2026, 1, 10, 8, 5), "UTC") == "08:05"


@pytest.mark.parametrize("name", [None, "", "Not/AZone"])
def test_unknown_timezone_falls_back_to_default(
    name: str | None, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(clock.settings, "default_timezone", "Asia/Tokyo")

    assert clock.resolve_timezone(name).key == "Asia/Tokyo"
