from __future__ import annotations

import logging
import traceback
from typing import Any

from habits.core.config import settings
from habits.services.privacy import redact_secrets_text, sanitize_for_log
from habits.services.supabase_rest import SupabaseRest

logger = logging.getLogger(__name__)

_MAX_STACK = 8000


def _format_stack(err: BaseException | None) -> str | None:
    if err is None:
        return None
    raw = "".join(traceback.format_exception(type(err), err, err.__traceback__))
    return redact_secrets_text(raw[:_MAX_STACK])


async def log_system_error(
    *,
    route: str,
    message: str,
    user_id: str | None = None,
    err: BaseException | None = None,
    meta: dict[str, Any] | None = None,
) -> None:
    row: dict[str, Any] = {
        "route": sanitize_for_log(route),
        "message": sanitize_for_log(message),
        "stack": _format_stack(err),
        "user_id": user_id,
        "meta": sanitize_for_log(meta or {}),
    }
    logger.error("%s: %s", row["route"], row["message"], extra={"meta": row["meta"]})

    # Best-effort persistence; never raise.
    try:
        sb = SupabaseRest(str(settings.supabase_url), settings.supabase_service_role_key)
        await sb.insert_one("system_errors", row=row)
    except Exception:
        logger.debug("system_errors insert failed", exc_info=True)
