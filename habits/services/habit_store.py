from __future__ import annotations

import secrets
from datetime import date as Date
from typing import Any

from habits.core.config import settings
from habits.services.dates import MalformedDateError, format_date, parse_any
from habits.services.supabase_rest import SupabaseRest

THEMES: tuple[str, ...] = ("ORANGE", "BLUE", "GREEN", "YELLOW")
DEFAULT_THEME = "ORANGE"

_HABIT_FIELDS = "id,user_id,name,description,theme,emoji,created_at"
_HABIT_WITH_COMPLETIONS = f"{_HABIT_FIELDS},habit_completions(day,notes)"
_USER_SETTINGS_FIELDS = "id,phone,call_enabled,call_time,timezone,created_at"
_ID_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_-"


def _sb() -> SupabaseRest:
    return SupabaseRest(str(settings.supabase_url), settings.supabase_service_role_key)


def new_habit_id(size: int = 21) -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(size))


def completion_rows(habit: dict[str, Any]) -> list[dict[str, Any]]:
    rows = habit.get("habit_completions")
    if not isinstance(rows, list):
        return []
    return [r for r in rows if isinstance(r, dict)]


def _matching_days(rows: list[dict[str, Any]], day: Date) -> list[str]:
    """Stored day strings (either textual format) that fall on `day`."""
    out: list[str] = []
    for row in rows:
        raw = row.get("day")
        try:
            if parse_any(raw) == day:
                out.append(str(raw))
        except MalformedDateError:
            continue
    return out


# ── Users ─────────────────────────────────────────────────────────────────────


async def get_or_create_user(*, user_id: str) -> dict[str, Any]:
    sb = _sb()
    rows = await sb.select(
        "users",
        params={"select": _USER_SETTINGS_FIELDS, "id": f"eq.{user_id}", "limit": 1},
    )
    if rows:
        return rows[0]
    return await sb.upsert_one(
        "users", row={"id": user_id}, on_conflict="id", ignore_duplicates=True
    ) or {"id": user_id}


async def get_user_settings(*, user_id: str) -> dict[str, Any] | None:
    rows = await _sb().select(
        "users",
        params={"select": _USER_SETTINGS_FIELDS, "id": f"eq.{user_id}", "limit": 1},
    )
    return rows[0] if rows else None


async def update_user_settings(*, user_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    return await _sb().upsert_one(
        "users", row={"id": user_id, **changes}, on_conflict="id"
    )


async def save_push_subscription(
    *, user_id: str, endpoint: str, p256dh: str, auth: str
) -> dict[str, Any]:
    return await _sb().upsert_one(
        "push_subscriptions",
        row={"user_id": user_id, "endpoint": endpoint, "p256dh": p256dh, "auth": auth},
        on_conflict="user_id",
    )


# ── Habits ────────────────────────────────────────────────────────────────────


async def list_habits(*, user_id: str) -> list[dict[str, Any]]:
    return await _sb().select(
        "habits",
        params={
            "select": _HABIT_WITH_COMPLETIONS,
            "user_id": f"eq.{user_id}",
            "order": "created_at.asc",
        },
    )


async def get_owned_habit(*, user_id: str, habit_id: str) -> dict[str, Any] | None:
    rows = await _sb().select(
        "habits",
        params={
            "select": _HABIT_WITH_COMPLETIONS,
            "id": f"eq.{habit_id}",
            "user_id": f"eq.{user_id}",
            "limit": 1,
        },
    )
    return rows[0] if rows else None


async def create_habit(*, user_id: str, name: str, theme: str) -> dict[str, Any]:
    return await _sb().insert_one(
        "habits",
        row={
            "id": new_habit_id(),
            "user_id": user_id,
            "name": name,
            "theme": theme if theme in THEMES else DEFAULT_THEME,
        },
    )


async def update_habit(
    *, user_id: str, habit_id: str, changes: dict[str, Any]
) -> bool:
    updated = await _sb().patch(
        "habits",
        params={"id": f"eq.{habit_id}", "user_id": f"eq.{user_id}"},
        payload=changes,
    )
    return bool(updated)


async def delete_habit(*, user_id: str, habit_id: str) -> bool:
    deleted = await _sb().delete(
        "habits",
        params={"id": f"eq.{habit_id}", "user_id": f"eq.{user_id}"},
    )
    return bool(deleted)


# ── Completions ───────────────────────────────────────────────────────────────


async def list_completions(*, habit_id: str) -> list[dict[str, Any]]:
    return await _sb().select(
        "habit_completions",
        params={"select": "day,notes", "habit_id": f"eq.{habit_id}"},
    )


async def log_completion(*, habit_id: str, day: Date) -> bool:
    """Mark `day` complete. Returns False when it already was."""
    existing = await list_completions(habit_id=habit_id)
    if _matching_days(existing, day):
        return False
    await _sb().upsert_one(
        "habit_completions",
        row={"habit_id": habit_id, "day": format_date(day)},
        on_conflict="habit_id,day",
        ignore_duplicates=True,
    )
    return True


async def unlog_completion(*, habit_id: str, day: Date) -> int:
    sb = _sb()
    existing = await list_completions(habit_id=habit_id)
    removed = 0
    for raw in _matching_days(existing, day):
        rows = await sb.delete(
            "habit_completions",
            params={"habit_id": f"eq.{habit_id}", "day": f"eq.{raw}"},
        )
        removed += len(rows)
    return removed


async def set_completion_notes(*, habit_id: str, day: Date, notes: str | None) -> bool:
    """Update notes on an existing completion; never creates one."""
    sb = _sb()
    existing = await list_completions(habit_id=habit_id)
    matched = _matching_days(existing, day)
    for raw in matched:
        await sb.patch(
            "habit_completions",
            params={"habit_id": f"eq.{habit_id}", "day": f"eq.{raw}"},
            payload={"notes": notes},
        )
    return bool(matched)


# ── Batch reads for scheduled jobs ────────────────────────────────────────────


async def list_subscribed_users(*, limit: int) -> list[dict[str, Any]]:
    return await _sb().select(
        "users",
        params={
            "select": "id,timezone,push_subscriptions!inner(endpoint,p256dh,auth),"
            "habits(id,name,habit_completions(day))",
            "order": "created_at.asc",
            "limit": limit,
        },
    )


async def list_call_enabled_users(
    *, limit: int, user_id: str | None = None
) -> list[dict[str, Any]]:
    params: dict[str, Any] = {
        "select": "id,phone,call_time,timezone,habits(id,name,habit_completions(day))",
        "call_enabled": "is.true",
        "phone": "not.is.null",
        "limit": limit,
    }
    if user_id is not None:
        params["id"] = f"eq.{user_id}"
    return await _sb().select("users", params=params)


async def insert_call_log(*, user_id: str, status: str) -> dict[str, Any]:
    return await _sb().insert_one(
        "call_logs", row={"user_id": user_id, "status": status}
    )


async def list_call_logs(*, user_id: str, limit: int = 20) -> list[dict[str, Any]]:
    return await _sb().select(
        "call_logs",
        params={
            "select": "id,status,started_at,ended_at,duration",
            "user_id": f"eq.{user_id}",
            "order": "started_at.desc",
            "limit": limit,
        },
    )


async def set_call_log_status(*, call_log_id: Any, status: str) -> None:
    if call_log_id is None:
        return
    await _sb().patch(
        "call_logs", params={"id": f"eq.{call_log_id}"}, payload={"status": status}
    )
