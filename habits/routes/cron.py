from __future__ import annotations

import secrets

from fastapi import APIRouter, HTTPException, Request, status

from habits.core.config import settings
from habits.schemas.cron import CronRunResponse
from habits.services.clock import utc_now
from habits.services.scheduler import RunStats, run_due_notifications, run_scheduled_calls

router = APIRouter()


def _verify_cron_token(request: Request) -> None:
    expected = (settings.cron_token or "").strip()
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Cron token is not configured",
        )
    provided = (request.headers.get("X-Cron-Token") or "").strip()
    if not provided or not secrets.compare_digest(provided, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def _ensure_notifier() -> None:
    if not settings.is_notify_configured():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="NOTIFY_WEBHOOK_URL is not configured",
        )


def _to_response(stats: RunStats) -> CronRunResponse:
    return CronRunResponse(
        scanned=stats.scanned,
        sent=stats.sent,
        failed=stats.failed,
        suppressed=dict(stats.suppressed),
    )


@router.post("/cron/notify-due", response_model=CronRunResponse)
async def notify_due(request: Request) -> CronRunResponse:
    _verify_cron_token(request)
    _ensure_notifier()
    return _to_response(await run_due_notifications(now_utc=utc_now()))


@router.post("/cron/scheduled-calls", response_model=CronRunResponse)
async def scheduled_calls(request: Request) -> CronRunResponse:
    _verify_cron_token(request)
    _ensure_notifier()
    return _to_response(await run_scheduled_calls(now_utc=utc_now()))
