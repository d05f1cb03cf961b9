from __future__ import annotations

from dataclasses import dataclass
from datetime import date as Date
from datetime import datetime
from typing import Any, Iterable

from habits.services.clock import local_hhmm, local_today
from habits.services.dates import parse_many


@dataclass(frozen=True)
class HabitCheck:
    name: str
    completed: bool


def _join(names: Iterable[str]) -> str:
    return ", ".join(names)


def generate_check_in_message(
    habits: list[HabitCheck], *, today: Date, user_name: str | None = None
) -> str:
    greeting = f"Hey {user_name}!" if user_name else "Hey there!"
    spoken_day = f"{today:%A, %B} {today.day}"
    done = [h.name for h in habits if h.completed]
    remaining = [h.name for h in habits if not h.completed]

    message = f"{greeting} It's {spoken_day}. Let's check in on your habits. "
    if done:
        message += f"Great job on completing {_join(done)}! "
    if remaining:
        message += f"You still have {_join(remaining)} to go. "
        message += "Would you like to tell me about any of these?"
    elif done:
        message += "You've completed all your habits for today! Amazing work!"
    else:
        message += "Let's get started with your habits today!"
    return message


def habit_checks(habits: list[dict[str, Any]], *, today: Date) -> list[HabitCheck]:
    out: list[HabitCheck] = []
    for habit in habits:
        rows = habit.get("habit_completions") or []
        parsed = parse_many(r.get("day") for r in rows if isinstance(r, dict))
        out.append(
            HabitCheck(name=str(habit.get("name") or ""), completed=today in parsed.dates)
        )
    return out


def is_call_due(user: dict[str, Any], *, now_utc: datetime) -> bool:
    """True when the user's local HH:MM equals their configured call time."""
    call_time = user.get("call_time")
    if not isinstance(call_time, str) or not user.get("phone"):
        return False
    return call_time.strip() == local_hhmm(now_utc, user.get("timezone"))


def build_call_payload(user: dict[str, Any], *, now_utc: datetime) -> dict[str, Any]:
    today = local_today(now_utc, user.get("timezone"))
    checks = habit_checks(user.get("habits") or [], today=today)
    return {
        "phone": user.get("phone"),
        "message": generate_check_in_message(checks, today=today),
        "habits": [{"name": c.name, "completed": c.completed} for c in checks],
    }
