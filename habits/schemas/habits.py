from __future__ import annotations

from datetime import date as Date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from habits.services.calendar_views import Resolution

Theme = Literal["ORANGE", "BLUE", "GREEN", "YELLOW"]


class HabitCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(default="New Habit", min_length=1, max_length=120)
    # Unknown themes fall back to ORANGE instead of failing the request.
    theme: str = Field(default="ORANGE", max_length=16)


class HabitRef(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, max_length=64)


class HabitRenameRequest(HabitRef):
    name: str = Field(min_length=1, max_length=120)


class HabitThemeRequest(HabitRef):
    theme: Theme


class HabitDetailsRequest(HabitRef):
    description: str | None = Field(default=None, max_length=1000)
    emoji: str | None = Field(default=None, max_length=16)


class CompletionRequest(HabitRef):
    day: str = Field(
        min_length=1,
        max_length=32,
        description='"DD MMM YYYY", "Www, D MMM, YYYY" or YYYY-MM-DD',
    )


class NotesRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    habit_id: str = Field(alias="habitId", min_length=1, max_length=64)
    day: str = Field(min_length=1, max_length=32)
    notes: str | None = Field(default=None, max_length=2000)


class DateWarningOut(BaseModel):
    raw: str
    code: str
    message: str


class CompletionDetail(BaseModel):
    day: str
    notes: str | None = None


class HabitOut(BaseModel):
    id: str
    name: str
    description: str | None = None
    theme: Theme = "ORANGE"
    emoji: str | None = None
    created_at: str | None = None
    completed: list[str] = Field(default_factory=list)
    completion_details: list[CompletionDetail] = Field(default_factory=list)
    current_streak: int = 0
    longest_streak: int = 0
    is_due: bool = True
    total_completions: int = 0
    last_completed: Date | None = None
    warnings: list[DateWarningOut] = Field(default_factory=list)


class HabitsResponse(BaseModel):
    id: str
    created_at: str | None = None
    today: Date
    habits: list[HabitOut]


class CompletionResponse(BaseModel):
    success: bool
    day: str
    changed: bool


class CalendarSlotOut(BaseModel):
    date: Date | None = None
    completed: bool = False


class CalendarViewOut(BaseModel):
    habit_id: str
    resolution: Resolution
    anchor: Date
    today: Date
    completed_count: int
    slots: list[CalendarSlotOut]
    weeks: list[list[CalendarSlotOut]]
    warnings: list[DateWarningOut] = Field(default_factory=list)


class DueHabit(BaseModel):
    id: str
    name: str
    last_completed: Date | None = None


class DueHabitsResponse(BaseModel):
    today: Date
    threshold_days: int
    habits: list[DueHabit]
