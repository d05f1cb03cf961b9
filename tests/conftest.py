from __future__ import annotations

import os
from typing import Any
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

# Ensure CI can import app settings without a local .env file.
_ENV_DEFAULTS = {
    "APP_ENV": "test",
    "FRONTEND_URL": "http://localhost:3000",
    "SUPABASE_URL": "https://example.supabase.co",
    "SUPABASE_SERVICE_ROLE_KEY": "test-service-role-key",
    "NOTIFY_WEBHOOK_URL": "https://notify.example.test/events",
    "DEFAULT_TIMEZONE": "UTC",
}
for _key, _value in _ENV_DEFAULTS.items():
    os.environ.setdefault(_key, _value)

import habits.services.scheduler as scheduler
from habits.core.rate_limit import limiter
from habits.core.security import AuthContext, verify_token
from habits.main import app
from habits.services.supabase_rest import SupabaseRest

from tests.helpers import TEST_USER_ID


@pytest.fixture(autouse=True)
def reset_test_state() -> None:
    app.dependency_overrides.clear()
    limiter.reset()
    scheduler._last_call_minute.clear()  # type: ignore[attr-defined]


@pytest.fixture
def client() -> TestClient:
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": TEST_USER_ID}


@pytest.fixture
def authenticated_client(client: TestClient) -> TestClient:
    async def _override_verify_token() -> AuthContext:
        return AuthContext(user_id=TEST_USER_ID)

    app.dependency_overrides[verify_token] = _override_verify_token
    return client


@pytest.fixture
def supabase_mock(monkeypatch: pytest.MonkeyPatch) -> dict[str, AsyncMock]:
    mocks = {
        "select": AsyncMock(return_value=[]),
        "insert_one": AsyncMock(return_value={}),
        "upsert_one": AsyncMock(return_value={}),
        "patch": AsyncMock(return_value=[]),
        "delete": AsyncMock(return_value=[]),
    }

    async def _select(self: SupabaseRest, table: str, *, params: dict[str, Any]) -> list[dict[str, Any]]:
        return await mocks["select"](table=table, params=params)

    async def _insert_one(self: SupabaseRest, table: str, *, row: dict[str, Any]) -> dict[str, Any]:
        return await mocks["insert_one"](table=table, row=row)

    async def _upsert_one(
        self: SupabaseRest,
        table: str,
        *,
        row: dict[str, Any],
        on_conflict: str,
        ignore_duplicates: bool = False,
    ) -> dict[str, Any]:
        return await mocks["upsert_one"](
            table=table,
            row=row,
            on_conflict=on_conflict,
            ignore_duplicates=ignore_duplicates,
        )

    async def _patch(
        self: SupabaseRest,
        table: str,
        *,
        params: dict[str, Any],
        payload: dict[str, Any],
    ) -> list[dict[str, Any]]:
        return await mocks["patch"](table=table, params=params, payload=payload)

    async def _delete(self: SupabaseRest, table: str, *, params: dict[str, Any]) -> list[dict[str, Any]]:
        return await mocks["delete"](table=table, params=params)

    monkeypatch.setattr(SupabaseRest, "select", _select)
    monkeypatch.setattr(SupabaseRest, "insert_one", _insert_one)
    monkeypatch.setattr(SupabaseRest, "upsert_one", _upsert_one)
    monkeypatch.setattr(SupabaseRest, "patch", _patch)
    monkeypatch.setattr(SupabaseRest, "delete", _delete)
    return mocks
