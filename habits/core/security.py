from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from habits.core.rate_limit import consume

# Sync ids are generated client-side (16 upper-case alphanumerics by default)
# and double as the only credential.
_SYNC_ID_RE = re.compile(r"^[A-Za-z0-9_\-]{8,128}$")


@dataclass(frozen=True)
class AuthContext:
    user_id: str


def _get_sync_id(request: Request) -> str:
    raw = (request.headers.get("authorization") or "").strip()
    if raw.lower().startswith("bearer "):
        raw = raw.split(" ", 1)[1].strip()
    if not raw or not _SYNC_ID_RE.fullmatch(raw):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return raw


async def get_auth_context(request: Request) -> AuthContext:
    ip = request.client.host if request.client else "unknown"
    await consume(key=f"ip:{ip}", limit=240, window_seconds=60)

    user_id = _get_sync_id(request)
    await consume(key=f"user:{user_id}", limit=240, window_seconds=60)
    return AuthContext(user_id=user_id)


async def verify_token(request: Request) -> AuthContext:
    return await get_auth_context(request)


AuthDep = Annotated[AuthContext, Depends(verify_token)]
