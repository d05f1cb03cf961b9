from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

from habits.core.config import settings
from habits.routes.cron import router as cron_router
from habits.routes.habits import router as habits_router
from habits.routes.settings import router as settings_router
from habits.services.error_log import log_system_error
from habits.services.scheduler import call_scheduler_loop
from habits.services.supabase_rest import SupabaseRestError, close_http


@asynccontextmanager
async def lifespan(_: FastAPI):
    poller: asyncio.Task | None = None
    if settings.scheduled_calls_enabled:
        poller = asyncio.create_task(
            call_scheduler_loop(interval_seconds=settings.scheduled_calls_poll_seconds)
        )
    yield
    if poller is not None:
        poller.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await poller
    await close_http()


app = FastAPI(title="Habits Tracker API", version="0.1.0", lifespan=lifespan)


def _init_sentry() -> None:
    if not settings.sentry_dsn:
        return
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        integrations=[FastApiIntegration()],
        traces_sample_rate=max(0.0, min(settings.sentry_traces_sample_rate, 1.0)),
        send_default_pii=False,
        environment=settings.app_env,
    )


_init_sentry()


def _origin(url: str) -> str:
    # CORS compares scheme+host+port; FRONTEND_URL may carry a path.
    p = urlparse(url)
    if p.scheme and p.netloc:
        return f"{p.scheme}://{p.netloc}"
    return url.rstrip("/")


_ALLOWED_ORIGINS = sorted(
    {
        _origin(str(settings.frontend_url)),
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    }
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_ALLOWED_ORIGINS,
    allow_origin_regex=r"^https://.*\.vercel\.app$",
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


def _caller_id(request: Request) -> str | None:
    raw = (request.headers.get("authorization") or "").strip()
    if raw.lower().startswith("bearer "):
        raw = raw.split(" ", 1)[1].strip()
    return raw[:128] or None


@app.get("/health")
async def health() -> dict:
    return {"ok": True}


@app.exception_handler(SupabaseRestError)
async def supabase_rest_error_handler(request: Request, exc: SupabaseRestError):
    # Propagate 4xx; normalize 5xx to 502.
    status_code = exc.status_code if 400 <= exc.status_code < 500 else 502
    await log_system_error(
        route=str(request.url.path),
        message="Supabase request failed",
        user_id=_caller_id(request),
        err=exc,
        meta={"status_code": exc.status_code, "code": exc.code},
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": {
                "message": "Habit data request failed.",
                "hint": exc.hint,
                "code": exc.code,
            }
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    await log_system_error(
        route=str(request.url.path),
        message="Unhandled server error",
        user_id=_caller_id(request),
        err=exc,
        meta={"method": request.method},
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.include_router(habits_router, prefix="/api")
app.include_router(settings_router, prefix="/api")
app.include_router(cron_router, prefix="/api")
