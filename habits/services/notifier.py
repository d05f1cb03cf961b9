from __future__ import annotations

import logging
from datetime import date as Date
from typing import Any, Literal

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from habits.core.config import settings
from habits.services.dates import parse_many
from habits.services.habit_store import completion_rows
from habits.services.streaks import is_due

logger = logging.getLogger(__name__)

EventType = Literal["habits_due", "call_requested"]

_RETRYABLE_STATUSES = {408, 409, 425, 429, 500, 502, 503, 504}


class NotifierNotConfigured(RuntimeError):
    pass


def due_habit_names(
    habits: list[dict[str, Any]], *, today: Date, threshold_days: int
) -> list[str]:
    names: list[str] = []
    for habit in habits:
        parsed = parse_many(r.get("day") for r in completion_rows(habit))
        if is_due(parsed.dates, today, threshold_days):
            names.append(str(habit.get("name") or ""))
    return names


def build_due_payload(
    subscription: dict[str, Any], habit_names: list[str], *, threshold_days: int
) -> dict[str, Any]:
    return {
        "subscription": {
            "endpoint": subscription.get("endpoint"),
            "keys": {
                "p256dh": subscription.get("p256dh"),
                "auth": subscription.get("auth"),
            },
        },
        "notification": {
            "title": "Habits Due",
            "body": (
                f"You haven't completed these habits in {threshold_days}+ days: "
                f"{', '.join(habit_names)}"
            ),
            "icon": "/logo.png",
            "badge": "/logo.png",
            "tag": "habits-due",
            "data": {"url": "/"},
        },
    }


def _is_retryable_exception(exc: BaseException) -> bool:
    if isinstance(exc, (httpx.TimeoutException, httpx.TransportError)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in _RETRYABLE_STATUSES
    return False


def _before_sleep_log(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    if isinstance(exc, httpx.HTTPStatusError):
        logger.warning(
            "Notification delivery retrying due to status %s (attempt %s)",
            exc.response.status_code,
            retry_state.attempt_number,
        )
    else:
        logger.warning(
            "Notification delivery retrying due to transport error (attempt %s)",
            retry_state.attempt_number,
        )


async def post_event(
    *, event_type: EventType, user_id: str, payload: dict[str, Any]
) -> None:
    if not settings.notify_webhook_url:
        raise NotifierNotConfigured("NOTIFY_WEBHOOK_URL is not configured")

    headers = {"content-type": "application/json"}
    if settings.notify_webhook_token:
        headers["authorization"] = f"Bearer {settings.notify_webhook_token}"
    body = {"type": event_type, "user_id": user_id, "payload": payload}

    async with httpx.AsyncClient(timeout=httpx.Timeout(15.0)) as client:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(3),
            wait=wait_exponential_jitter(initial=0.4, max=3.0),
            retry=retry_if_exception(_is_retryable_exception),
            reraise=True,
            before_sleep=_before_sleep_log,
        ):
            with attempt:
                resp = await client.post(
                    str(settings.notify_webhook_url), headers=headers, json=body
                )
                resp.raise_for_status()
