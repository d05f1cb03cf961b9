from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

TEST_USER_ID = "TESTSYNCID000001"


def calls_for(mock: AsyncMock, table: str) -> list[dict[str, Any]]:
    return [c.kwargs for c in mock.await_args_list if c.kwargs.get("table") == table]


def habit_row(
    habit_id: str = "habit-1",
    *,
    name: str = "Run",
    days: list[str] | None = None,
    notes: dict[str, str] | None = None,
) -> dict[str, Any]:
    notes = notes or {}
    return {
        "id": habit_id,
        "user_id": TEST_USER_ID,
        "name": name,
        "description": None,
        "theme": "ORANGE",
        "emoji": None,
        "created_at": "2026-01-01T00:00:00+00:00",
        "habit_completions": [
            {"day": d, "notes": notes.get(d)} for d in (days or [])
        ],
    }


def user_row(**overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": TEST_USER_ID,
        "phone": None,
        "call_enabled": False,
        "call_time": None,
        "timezone": "UTC",
        "created_at": "2026-01-01T00:00:00+00:00",
    }
    row.update(overrides)
    return row


def fake_select(
    *,
    habits: list[dict[str, Any]] | None = None,
    users: list[dict[str, Any]] | None = None,
):
    """Side effect for the `select` mock backed by in-memory rows."""
    habits = habits if habits is not None else []
    users = users if users is not None else [user_row()]

    def _select(*, table: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        if table == "users":
            return list(users)
        if table == "habits":
            wanted = params.get("id")
            return [h for h in habits if wanted is None or wanted == f"eq.{h['id']}"]
        if table == "habit_completions":
            for habit in habits:
                if params.get("habit_id") == f"eq.{habit['id']}":
                    return list(habit["habit_completions"])
        return []

    return _select
