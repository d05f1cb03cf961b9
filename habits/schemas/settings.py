from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

TIME_RE = r"^([01]\d|2[0-3]):[0-5]\d$"
PHONE_RE = r"^\+?[0-9]{7,15}$"


def _check_timezone(value: str | None) -> str | None:
    if value is None:
        return None
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {value}")
    return value


class UserSettings(BaseModel):
    phone: str | None = None
    call_enabled: bool = False
    call_time: str | None = None
    timezone: str | None = None


class UserSettingsUpdate(BaseModel):
    """Partial update; only fields present in the request body are written."""

    model_config = ConfigDict(extra="forbid")

    phone: str | None = Field(default=None, pattern=PHONE_RE)
    call_enabled: bool | None = None
    call_time: str | None = Field(default=None, pattern=TIME_RE, description="HH:MM")
    timezone: str | None = Field(default=None, max_length=64)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str | None) -> str | None:
        return _check_timezone(value)


class PushKeys(BaseModel):
    p256dh: str = Field(min_length=1, max_length=512)
    auth: str = Field(min_length=1, max_length=512)


class PushSubscriptionRequest(BaseModel):
    endpoint: str = Field(min_length=8, max_length=2048)
    keys: PushKeys


class CallLogOut(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | int
    status: str
    started_at: str | None = None
    ended_at: str | None = None
    duration: int | None = None


class CallHistoryResponse(BaseModel):
    calls: list[CallLogOut]
