from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, status

from habits.core.config import settings
from habits.core.security import AuthDep
from habits.schemas.settings import (
    CallHistoryResponse,
    CallLogOut,
    PushSubscriptionRequest,
    UserSettings,
    UserSettingsUpdate,
)
from habits.services import habit_store
from habits.services.checkin import build_call_payload
from habits.services.clock import utc_now
from habits.services.error_log import log_system_error
from habits.services.notifier import NotifierNotConfigured, post_event

router = APIRouter()


def _to_settings(row: dict[str, Any] | None) -> UserSettings:
    row = row or {}
    return UserSettings(
        phone=row.get("phone"),
        call_enabled=bool(row.get("call_enabled") or False),
        call_time=row.get("call_time"),
        timezone=row.get("timezone"),
    )


@router.get("/user/settings", response_model=UserSettings)
async def get_settings(auth: AuthDep) -> UserSettings:
    row = await habit_store.get_user_settings(user_id=auth.user_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return _to_settings(row)


@router.post("/user/settings", response_model=UserSettings)
async def update_settings(body: UserSettingsUpdate, auth: AuthDep) -> UserSettings:
    changes = body.model_dump(include=body.model_fields_set)
    if not changes:
        return await get_settings(auth)
    row = await habit_store.update_user_settings(user_id=auth.user_id, changes=changes)
    return _to_settings(row)


@router.post("/push/subscribe")
async def subscribe_push(body: PushSubscriptionRequest, auth: AuthDep) -> dict[str, bool]:
    await habit_store.get_or_create_user(user_id=auth.user_id)
    await habit_store.save_push_subscription(
        user_id=auth.user_id,
        endpoint=body.endpoint,
        p256dh=body.keys.p256dh,
        auth=body.keys.auth,
    )
    return {"success": True}


@router.post("/calls/initiate")
async def initiate_call(auth: AuthDep) -> dict[str, Any]:
    users = await habit_store.list_call_enabled_users(limit=1, user_id=auth.user_id)
    if not users:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Calls not enabled or no phone number",
        )

    if not settings.is_notify_configured():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Call service is not configured",
        )

    log_row = await habit_store.insert_call_log(user_id=auth.user_id, status="initiated")
    payload = build_call_payload(users[0], now_utc=utc_now())
    payload["call_log_id"] = log_row.get("id")
    try:
        await post_event(event_type="call_requested", user_id=auth.user_id, payload=payload)
    except NotifierNotConfigured:
        await habit_store.set_call_log_status(call_log_id=log_row.get("id"), status="failed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Call service is not configured",
        )
    except Exception as exc:
        await log_system_error(
            route="/api/calls/initiate",
            message="call request delivery failed",
            user_id=auth.user_id,
            err=exc,
        )
        await habit_store.set_call_log_status(call_log_id=log_row.get("id"), status="failed")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to initiate call"
        )
    return {"success": True, "callId": log_row.get("id")}


@router.get("/calls/history", response_model=CallHistoryResponse)
async def call_history(auth: AuthDep) -> CallHistoryResponse:
    rows = await habit_store.list_call_logs(user_id=auth.user_id)
    return CallHistoryResponse(calls=[CallLogOut.model_validate(r) for r in rows])
