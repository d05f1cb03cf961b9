from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from habits.core.config import settings
from habits.services import habit_store
from habits.services.checkin import build_call_payload, is_call_due
from habits.services.clock import local_now, local_today, utc_now
from habits.services.error_log import log_system_error
from habits.services.notifier import build_due_payload, due_habit_names, post_event
from habits.services.supabase_rest import SupabaseRestError

logger = logging.getLogger(__name__)

# user_id -> "YYYY-MM-DD HH:MM" (local) of the last call requested.
_last_call_minute: dict[str, str] = {}


@dataclass
class RunStats:
    scanned: int = 0
    sent: int = 0
    failed: int = 0
    suppressed: Counter[str] = field(default_factory=Counter)


async def run_due_notifications(*, now_utc: datetime) -> RunStats:
    stats = RunStats()
    users = await habit_store.list_subscribed_users(limit=settings.notify_batch_size)
    threshold = settings.due_threshold_days

    for user in users:
        user_id = user.get("id")
        if not isinstance(user_id, str) or not user_id:
            continue
        stats.scanned += 1

        subs = user.get("push_subscriptions") or []
        if isinstance(subs, dict):
            subs = [subs]
        if not subs:
            stats.suppressed["no_subscription"] += 1
            continue

        today = local_today(now_utc, user.get("timezone"))
        names = due_habit_names(
            user.get("habits") or [], today=today, threshold_days=threshold
        )
        if not names:
            stats.suppressed["nothing_due"] += 1
            continue

        try:
            await post_event(
                event_type="habits_due",
                user_id=user_id,
                payload=build_due_payload(subs[0], names, threshold_days=threshold),
            )
            stats.sent += 1
        except Exception as exc:
            stats.failed += 1
            await log_system_error(
                route="/api/cron/notify-due",
                message="habits due notification failed",
                user_id=user_id,
                err=exc,
                meta={"habit_count": len(names)},
            )

    logger.info(
        "Due notifications: scanned=%s sent=%s failed=%s",
        stats.scanned,
        stats.sent,
        stats.failed,
    )
    return stats


async def _mark_call_failed(call_log_id: Any) -> None:
    try:
        await habit_store.set_call_log_status(call_log_id=call_log_id, status="failed")
    except SupabaseRestError:
        logger.warning("Could not mark call log %s as failed", call_log_id, exc_info=True)


async def run_scheduled_calls(*, now_utc: datetime) -> RunStats:
    stats = RunStats()
    if not settings.is_notify_configured():
        logger.warning("Scheduled calls skipped: NOTIFY_WEBHOOK_URL is not configured")
        return stats
    users = await habit_store.list_call_enabled_users(limit=settings.notify_batch_size)

    for user in users:
        user_id = user.get("id")
        if not isinstance(user_id, str) or not user_id:
            continue
        stats.scanned += 1

        if not is_call_due(user, now_utc=now_utc):
            stats.suppressed["not_scheduled_now"] += 1
            continue
        minute_key = local_now(now_utc, user.get("timezone")).strftime("%Y-%m-%d %H:%M")
        if _last_call_minute.get(user_id) == minute_key:
            stats.suppressed["already_requested"] += 1
            continue

        log_row: dict[str, Any] = {}
        try:
            log_row = await habit_store.insert_call_log(user_id=user_id, status="initiated")
            payload = build_call_payload(user, now_utc=now_utc)
            payload["call_log_id"] = log_row.get("id")
            await post_event(event_type="call_requested", user_id=user_id, payload=payload)
            _last_call_minute[user_id] = minute_key
            stats.sent += 1
        except Exception as exc:
            stats.failed += 1
            await _mark_call_failed(log_row.get("id"))
            await log_system_error(
                route="scheduled_calls",
                message="scheduled call request failed",
                user_id=user_id,
                err=exc,
            )

    return stats


async def call_scheduler_loop(*, interval_seconds: int) -> None:
    logger.info("Scheduled call poller started (every %ss)", interval_seconds)
    while True:
        try:
            await run_scheduled_calls(now_utc=utc_now())
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            await log_system_error(
                route="scheduled_calls",
                message="scheduled call poll failed",
                err=exc,
            )
        await asyncio.sleep(interval_seconds)
