from __future__ import annotations

from datetime import date as Date
from datetime import datetime, timezone

from habits.services.checkin import (
    HabitCheck,
    build_call_payload,
    generate_check_in_message,
    is_call_due,
)
from tests.helpers import habit_row

TODAY = Date(2026, 10, 19)


def test_message_with_remaining_habits() -> None:
    message = generate_check_in_message(
        [HabitCheck("Run", True), HabitCheck("Read", False), HabitCheck("Write", False)],
        today=TODAY,
        user_name="Sam",
    )

    assert message.startswith("Hey Sam! It's Monday, October 19.")
    assert "Great job on completing Run!" in message
    assert "You still have Read, Write to go." in message
    assert message.endswith("Would you like to tell me about any of these?")


def test_message_when_everything_is_done() -> None:
    message = generate_check_in_message([HabitCheck("Run", True)], today=TODAY)

    assert message.startswith("Hey there!")
    assert message.endswith("You've completed all your habits for today! Amazing work!")


def test_message_without_habits() -> None:
    message = generate_check_in_message([], today=TODAY)

    assert message.endswith("Let's get started with your habits today!")


def test_is_call_due_matches_local_minute() -> None:
    user = {"phone": "+15551234567", "call_time": "08:30", "timezone": "America/New_York"}

    assert is_call_due(user, now_utc=datetime(2026, 10, 19, 12, 30, tzinfo=timezone.utc))
    assert not is_call_due(user, now_utc=datetime(2026, 10, 19, 12, 31, tzinfo=timezone.utc))
    assert not is_call_due({**user, "phone": None}, now_utc=datetime(2026, 10, 19, 12, 30, tzinfo=timezone.utc))


def test_build_call_payload_marks_today_completions() -> None:
    user = {
        "phone": "+15551234567",
        "timezone": "UTC",
        "habits": [
            habit_row("a", name="Run", days=["Mon, 19 Oct, 2026"]),
            habit_row("b", name="Read", days=["18 Oct 2026"]),
        ],
    }

    payload = build_call_payload(user, now_utc=datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc))

    assert payload["phone"] == "+15551234567"
    assert payload["habits"] == [
        {"name": "Run", "completed": True},
        {"name": "Read", "completed": False},
    ]
    assert "You still have Read to go." in payload["message"]
