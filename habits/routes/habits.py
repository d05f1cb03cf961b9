from __future__ import annotations

from datetime import date as Date
from typing import Any

from fastapi import APIRouter, HTTPException, Query, status

from habits.core.config import settings
from habits.core.security import AuthDep
from habits.schemas.habits import (
    CalendarSlotOut,
    CalendarViewOut,
    CompletionDetail,
    CompletionRequest,
    CompletionResponse,
    DateWarningOut,
    DueHabit,
    DueHabitsResponse,
    HabitCreateRequest,
    HabitDetailsRequest,
    HabitOut,
    HabitRef,
    HabitRenameRequest,
    HabitsResponse,
    HabitThemeRequest,
    NotesRequest,
)
from habits.services import habit_store
from habits.services.calendar_views import CalendarSlot, Resolution, bucket_for_view
from habits.services.clock import local_today, utc_now
from habits.services.dates import (
    DateWarning,
    MalformedDateError,
    format_date,
    parse_any,
    parse_many,
)
from habits.services.streaks import summarize

router = APIRouter()


def _parse_request_day(raw: str) -> Date:
    try:
        return parse_any(raw)
    except MalformedDateError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": str(exc), "code": exc.code},
        )


def _warnings_out(warnings: list[DateWarning]) -> list[DateWarningOut]:
    return [DateWarningOut(raw=w.raw, code=w.code, message=w.message) for w in warnings]


def _habit_out(habit: dict[str, Any], *, today: Date) -> HabitOut:
    rows = habit_store.completion_rows(habit)
    stats = summarize(
        (r.get("day") for r in rows),
        today,
        threshold_days=settings.due_threshold_days,
    )
    theme = habit.get("theme")
    return HabitOut(
        id=str(habit.get("id")),
        name=str(habit.get("name") or ""),
        description=habit.get("description"),
        theme=theme if theme in habit_store.THEMES else habit_store.DEFAULT_THEME,
        emoji=habit.get("emoji"),
        created_at=habit.get("created_at"),
        completed=[str(r.get("day")) for r in rows],
        completion_details=[
            CompletionDetail(day=str(r.get("day")), notes=r.get("notes")) for r in rows
        ],
        current_streak=stats.current_streak,
        longest_streak=stats.longest_streak,
        is_due=stats.is_due,
        total_completions=stats.total_completions,
        last_completed=stats.last_completed,
        warnings=_warnings_out(stats.warnings),
    )


async def _resolve_today(user_id: str, override: Date | None) -> Date:
    if override is not None:
        return override
    user = await habit_store.get_user_settings(user_id=user_id)
    return local_today(utc_now(), (user or {}).get("timezone"))


async def _habits_response(user_id: str, *, today: Date | None = None) -> HabitsResponse:
    user = await habit_store.get_or_create_user(user_id=user_id)
    if today is None:
        today = local_today(utc_now(), user.get("timezone"))
    habits = await habit_store.list_habits(user_id=user_id)
    return HabitsResponse(
        id=user_id,
        created_at=user.get("created_at"),
        today=today,
        habits=[_habit_out(h, today=today) for h in habits],
    )


async def _require_habit(user_id: str, habit_id: str) -> dict[str, Any]:
    habit = await habit_store.get_owned_habit(user_id=user_id, habit_id=habit_id)
    if habit is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Habit not found")
    return habit


@router.get("/habits", response_model=HabitsResponse)
async def list_habits(
    auth: AuthDep,
    today: Date | None = Query(default=None, description="YYYY-MM-DD"),
) -> HabitsResponse:
    return await _habits_response(auth.user_id, today=today)


@router.post("/habits/create", response_model=HabitsResponse)
async def create_habit(body: HabitCreateRequest, auth: AuthDep) -> HabitsResponse:
    await habit_store.get_or_create_user(user_id=auth.user_id)
    created = await habit_store.create_habit(
        user_id=auth.user_id, name=body.name, theme=body.theme
    )
    if not created:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create habit",
        )
    return await _habits_response(auth.user_id)


@router.post("/habits/delete", response_model=HabitsResponse)
async def delete_habit(body: HabitRef, auth: AuthDep) -> HabitsResponse:
    if not await habit_store.delete_habit(user_id=auth.user_id, habit_id=body.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Habit not found")
    return await _habits_response(auth.user_id)


async def _update_or_404(user_id: str, habit_id: str, changes: dict[str, Any]) -> None:
    if not await habit_store.update_habit(
        user_id=user_id, habit_id=habit_id, changes=changes
    ):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Habit not found")


@router.post("/habits/rename", response_model=HabitsResponse)
async def rename_habit(body: HabitRenameRequest, auth: AuthDep) -> HabitsResponse:
    await _update_or_404(auth.user_id, body.id, {"name": body.name})
    return await _habits_response(auth.user_id)


@router.post("/habits/update-theme", response_model=HabitsResponse)
async def update_theme(body: HabitThemeRequest, auth: AuthDep) -> HabitsResponse:
    await _update_or_404(auth.user_id, body.id, {"theme": body.theme})
    return await _habits_response(auth.user_id)


@router.post("/habits/update-details", response_model=HabitsResponse)
async def update_details(body: HabitDetailsRequest, auth: AuthDep) -> HabitsResponse:
    changes = body.model_dump(include={"description", "emoji"} & body.model_fields_set)
    if changes:
        await _update_or_404(auth.user_id, body.id, changes)
    else:
        await _require_habit(auth.user_id, body.id)
    return await _habits_response(auth.user_id)


@router.post("/habits/log", response_model=CompletionResponse)
async def log_completion(body: CompletionRequest, auth: AuthDep) -> CompletionResponse:
    day = _parse_request_day(body.day)
    await _require_habit(auth.user_id, body.id)
    created = await habit_store.log_completion(habit_id=body.id, day=day)
    return CompletionResponse(success=True, day=format_date(day), changed=created)


@router.post("/habits/unlog", response_model=CompletionResponse)
async def unlog_completion(body: CompletionRequest, auth: AuthDep) -> CompletionResponse:
    day = _parse_request_day(body.day)
    await _require_habit(auth.user_id, body.id)
    removed = await habit_store.unlog_completion(habit_id=body.id, day=day)
    return CompletionResponse(success=True, day=format_date(day), changed=removed > 0)


@router.post("/habits/add-notes", response_model=CompletionResponse)
async def add_notes(body: NotesRequest, auth: AuthDep) -> CompletionResponse:
    day = _parse_request_day(body.day)
    await _require_habit(auth.user_id, body.habit_id)
    updated = await habit_store.set_completion_notes(
        habit_id=body.habit_id, day=day, notes=body.notes
    )
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No completion recorded for this day",
        )
    return CompletionResponse(success=True, day=format_date(day), changed=True)


@router.get("/habits/due", response_model=DueHabitsResponse)
async def due_habits(
    auth: AuthDep,
    today: Date | None = Query(default=None, description="YYYY-MM-DD"),
) -> DueHabitsResponse:
    resolved = await _resolve_today(auth.user_id, today)
    habits = await habit_store.list_habits(user_id=auth.user_id)
    due: list[DueHabit] = []
    for habit in habits:
        out = _habit_out(habit, today=resolved)
        if out.is_due:
            due.append(DueHabit(id=out.id, name=out.name, last_completed=out.last_completed))
    return DueHabitsResponse(
        today=resolved, threshold_days=settings.due_threshold_days, habits=due
    )


def _slot_out(slot: CalendarSlot) -> CalendarSlotOut:
    return CalendarSlotOut(date=slot.date, completed=slot.completed)


@router.get("/habits/{habit_id}/calendar", response_model=CalendarViewOut)
async def habit_calendar(
    habit_id: str,
    auth: AuthDep,
    view: Resolution = Query(default=Resolution.MONTH),
    month_offset: int = Query(default=0, ge=-120, le=120),
    today: Date | None = Query(default=None, description="YYYY-MM-DD"),
) -> CalendarViewOut:
    habit = await _require_habit(auth.user_id, habit_id)
    resolved = await _resolve_today(auth.user_id, today)
    parsed = parse_many(r.get("day") for r in habit_store.completion_rows(habit))
    cal = bucket_for_view(parsed.dates, resolved, view, month_offset=month_offset)
    return CalendarViewOut(
        habit_id=habit_id,
        resolution=cal.resolution,
        anchor=cal.anchor,
        today=resolved,
        completed_count=cal.completed_count,
        slots=[_slot_out(s) for s in cal.slots],
        weeks=[[_slot_out(s) for s in week] for week in cal.weeks],
        warnings=_warnings_out(parsed.warnings),
    )
